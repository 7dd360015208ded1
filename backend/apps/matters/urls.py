from django.urls import include, path

from apps.common.routers import OptionalSlashRouter

from .views import MatterViewSet

router = OptionalSlashRouter()
router.register(r'matters', MatterViewSet, basename='matter')

urlpatterns = [
    path('', include(router.urls)),
]
