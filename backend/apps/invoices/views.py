"""
Invoice views
"""
from rest_framework import status, viewsets
from rest_framework.response import Response

from apps.common.permissions import IsPrivilegedOrReadOnly

from .serializers import InvoiceSerializer
from .services import InvoiceService


class InvoiceViewSet(viewsets.ViewSet):
    """
    ViewSet for invoices

    Clients read the invoices of their own matters; writes need an admin.
    """
    permission_classes = [IsPrivilegedOrReadOnly]

    def _context(self):
        return {'request': self.request}

    def list(self, request):
        params = request.query_params
        invoices = InvoiceService.search(
            request.user,
            matter_id=params.get('matter_id'),
            status=params.get('status'),
            client_id=params.get('client_id'),
        )
        return Response({'invoices': InvoiceSerializer(invoices, many=True, context=self._context()).data})

    def retrieve(self, request, pk=None):
        invoice = InvoiceService.get_for_user(request.user, pk)
        return Response({'invoice': InvoiceSerializer(invoice, context=self._context()).data})

    def create(self, request):
        invoice = InvoiceService.create_invoice(request.user, request.data)
        return Response(
            {
                'message': 'Invoice created successfully',
                'invoice': InvoiceSerializer(invoice, context=self._context()).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        invoice = InvoiceService.get_for_user(request.user, pk)
        invoice = InvoiceService.update_invoice(request.user, invoice, request.data)
        return Response({
            'message': 'Invoice updated successfully',
            'invoice': InvoiceSerializer(invoice, context=self._context()).data,
        })

    def destroy(self, request, pk=None):
        invoice = InvoiceService.get_for_user(request.user, pk)
        InvoiceService.delete_invoice(request.user, invoice)
        return Response({'message': 'Invoice deleted successfully'})
