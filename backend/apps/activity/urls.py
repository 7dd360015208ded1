from django.urls import include, path

from apps.common.routers import OptionalSlashRouter

from .views import ActivityViewSet

router = OptionalSlashRouter()
router.register(r'activity', ActivityViewSet, basename='activity')

urlpatterns = [
    path('', include(router.urls)),
]
