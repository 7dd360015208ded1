from django.urls import include, path

from apps.common.routers import OptionalSlashRouter

from .views import InvoiceViewSet

router = OptionalSlashRouter()
router.register(r'invoices', InvoiceViewSet, basename='invoice')

urlpatterns = [
    path('', include(router.urls)),
]
