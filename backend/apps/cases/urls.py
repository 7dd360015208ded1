from django.urls import include, path

from apps.common.routers import OptionalSlashRouter

from .views import CaseFileViewSet

router = OptionalSlashRouter()
router.register(r'cases', CaseFileViewSet, basename='case')

urlpatterns = [
    path('', include(router.urls)),
]
