from django.urls import include, path

from apps.common.routers import OptionalSlashRouter

from .views import TaskViewSet

router = OptionalSlashRouter()
router.register(r'tasks', TaskViewSet, basename='task')

urlpatterns = [
    path('', include(router.urls)),
]
