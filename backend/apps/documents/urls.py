from django.urls import include, path

from apps.common.routers import OptionalSlashRouter

from .views import DocumentViewSet

router = OptionalSlashRouter()
router.register(r'documents', DocumentViewSet, basename='document')

urlpatterns = [
    path('', include(router.urls)),
]
