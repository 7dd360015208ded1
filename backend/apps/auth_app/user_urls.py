"""
User management URLs
"""
from django.urls import include, path

from apps.common.routers import OptionalSlashRouter

from .views import UserViewSet

router = OptionalSlashRouter()
router.register(r'users', UserViewSet, basename='user')

urlpatterns = [
    path('', include(router.urls)),
]
