from django.urls import include, path

from apps.common.routers import OptionalSlashRouter

from .views import NoticeViewSet

router = OptionalSlashRouter()
router.register(r'notices', NoticeViewSet, basename='notice')

urlpatterns = [
    path('', include(router.urls)),
]
