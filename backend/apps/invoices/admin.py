from django.contrib import admin

from .models import Invoice


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'matter', 'invoice_date', 'due_date', 'total_amount', 'balance_due', 'status']
    list_filter = ['status']
    search_fields = ['invoice_number', 'recipient', 'subject']
    readonly_fields = ['id', 'created_at', 'updated_at']
