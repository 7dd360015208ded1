"""
Tests for invoice arithmetic, status inference and the invoice API
"""
import uuid
from datetime import date, timedelta

from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from apps.activity.models import ActivityEntry
from apps.common.exceptions import InvalidPayload
from apps.common.testing import make_matter, make_user
from apps.invoices.calculations import (
    compute_totals,
    infer_invoice_status,
    invoice_progress,
    normalize_line_items,
    parse_amount,
)
from apps.invoices.models import Invoice
from apps.invoices.services import InvoiceService, normalize_invoice_payload


class CalculationTests(SimpleTestCase):

    def test_parse_amount(self):
        self.assertEqual(parse_amount('1500.50'), 1500.5)
        self.assertEqual(parse_amount('abc', fallback=7), 7)
        self.assertEqual(parse_amount('', fallback=3), 3)
        self.assertEqual(parse_amount(None), 0.0)

    def test_parse_amount_rejects_non_finite_values(self):
        self.assertEqual(parse_amount('NaN', fallback=12), 12)
        self.assertEqual(parse_amount('Infinity', fallback=12), 12)
        self.assertEqual(parse_amount(float('-inf'), fallback=5), 5)
        self.assertEqual(parse_amount('1e3', fallback=5), 1000.0)

    def test_normalize_line_items(self):
        rows = normalize_line_items([
            {'date': '2024-04-02', 'particulars': ' Drafting ', 'amount': '2500'},
            {'description': 'Court fee', 'amount': 100},
            {'particulars': '', 'amount': 0},
            'junk',
        ])
        self.assertEqual(rows, [
            {'date': '2024-04-02', 'particulars': 'Drafting', 'amount': 2500.0},
            {'date': None, 'particulars': 'Court fee', 'amount': 100.0},
        ])
        self.assertEqual(normalize_line_items('not a list'), [])

    def test_advance_applies_to_expenses_only(self):
        totals = compute_totals(
            [{'amount': 1000}],
            [{'amount': 300}],
            [{'amount': 200}],
            advance_amount=500,
        )
        self.assertEqual(totals['advance_applied'], 300)
        self.assertEqual(totals['advance_balance'], 200)
        self.assertEqual(totals['net_expenses_total'], 0)
        self.assertEqual(totals['gross_total_amount'], 1500)
        self.assertEqual(totals['total_amount'], 1200)

    def test_negative_advance_is_ignored(self):
        totals = compute_totals([], [{'amount': 50}], [], advance_amount=-20)
        self.assertEqual(totals['advance_amount'], 0)
        self.assertEqual(totals['total_amount'], 50)

    def test_status_inference(self):
        today = date(2024, 5, 10)
        self.assertEqual(infer_invoice_status(0, 0, None, today), 'paid')
        self.assertEqual(infer_invoice_status(1000, 0, '2024-05-01', today), 'paid')
        self.assertEqual(infer_invoice_status(1000, 1000, None, today), 'paymentDue')
        self.assertEqual(infer_invoice_status(1000, 500, '2024-05-09', today), 'overdue')
        self.assertEqual(infer_invoice_status(1000, 500, '2024-05-17', today), 'dueSoon')
        self.assertEqual(infer_invoice_status(1000, 600, '2024-06-30', today), 'paymentDue')
        self.assertEqual(infer_invoice_status(1000, 400, '2024-06-30', today), 'partial')

    def test_progress(self):
        self.assertEqual(invoice_progress(0, 0), 0)
        self.assertEqual(invoice_progress(1000, 250), 0.75)
        self.assertEqual(invoice_progress(1000, 2000), 0)


class InvoicePayloadTests(TestCase):

    def setUp(self):
        self.matter = make_matter()

    def test_matter_is_required(self):
        with self.assertRaisesMessage(InvalidPayload, 'A valid matter is required for invoices.'):
            normalize_invoice_payload({})
        with self.assertRaisesMessage(InvalidPayload, 'Referenced matter could not be found.'):
            normalize_invoice_payload({'matter_id': str(uuid.uuid4())})

    def test_balance_defaults_to_total_and_status_is_inferred(self):
        matter, fields = normalize_invoice_payload({
            'matter': {'id': str(self.matter.pk)},
            'invoice_number': ' INV-7 ',
            'professional_fees': [{'particulars': 'Advice', 'amount': 900}],
            'due_date': (timezone.localdate() + timedelta(days=30)).isoformat(),
        })
        self.assertEqual(matter, self.matter)
        self.assertEqual(fields['invoice_number'], 'INV-7')
        self.assertEqual(fields['balance_due'], 900)
        self.assertEqual(fields['status'], 'paymentDue')
        self.assertEqual(fields['invoice_date'], timezone.localdate())

    def test_explicit_status_must_be_known(self):
        with self.assertRaisesMessage(InvalidPayload, 'status must be one of'):
            normalize_invoice_payload({'matter_id': str(self.matter.pk), 'status': 'void'})

        _, fields = normalize_invoice_payload({'matter_id': str(self.matter.pk), 'status': 'draft'})
        self.assertEqual(fields['status'], 'draft')


class InvoiceServiceTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin')
        self.matter = make_matter()

    def test_update_recomputes_and_keeps_matter(self):
        invoice = InvoiceService.create_invoice(self.admin, {
            'matter_id': str(self.matter.pk),
            'invoice_number': 'INV-1',
            'expenses': [{'particulars': 'Filing', 'amount': 400}],
        })
        other = make_matter(title='Other')

        InvoiceService.update_invoice(self.admin, invoice, {
            'matter_id': str(other.pk),
            'invoice_number': 'INV-1',
            'expenses': [{'particulars': 'Filing', 'amount': 400}],
            'balance_due': 0,
        })

        invoice.refresh_from_db()
        self.assertEqual(invoice.matter, self.matter)
        self.assertEqual(invoice.status, 'paid')
        entry = ActivityEntry.objects.get(entity_type='invoice', action='updated')
        changed = {change['field'] for change in entry.details}
        self.assertEqual(changed, {'balance_due', 'status'})

    def test_get_for_user(self):
        with self.assertRaisesMessage(InvalidPayload, 'Invalid invoice id'):
            InvoiceService.get_for_user(self.admin, 'abc')


class InvoiceViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user(role='admin')
        self.client_user = make_user(role='client')
        self.own_matter = make_matter(client=self.client_user)
        self.other_matter = make_matter(title='Other')
        self.own = Invoice.objects.create(matter=self.own_matter, invoice_number='OWN-1', status='partial')
        self.other = Invoice.objects.create(matter=self.other_matter, invoice_number='OTHER-1')

    def test_client_sees_own_invoices(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.get('/api/invoices')
        self.assertEqual([inv['invoice_number'] for inv in response.data['invoices']], ['OWN-1'])

        self.assertEqual(self.client.get(f'/api/invoices/{self.other.pk}').status_code, 404)
        response = self.client.get(f'/api/invoices/{self.own.pk}')
        self.assertEqual(response.data['invoice']['matter']['client']['id'], str(self.client_user.pk))

    def test_clients_cannot_write(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.post('/api/invoices', {'matter_id': str(self.own_matter.pk)}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_filters(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/invoices', {'status': 'partial'})
        self.assertEqual([inv['invoice_number'] for inv in response.data['invoices']], ['OWN-1'])

        response = self.client.get('/api/invoices', {'client_id': str(self.client_user.pk)})
        self.assertEqual(len(response.data['invoices']), 1)

        response = self.client.get('/api/invoices', {'matter_id': 'junk'})
        self.assertEqual(response.data['invoices'], [])

    def test_create_update_delete(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            '/api/invoices',
            {
                'matter_id': str(self.other_matter.pk),
                'invoice_number': 'INV-9',
                'professional_fees': [{'particulars': 'Opinion', 'amount': '1000'}],
                'balance_due': 250,
            },
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        invoice = response.data['invoice']
        self.assertEqual(invoice['total_amount'], 1000)
        self.assertEqual(invoice['progress'], 0.75)
        self.assertEqual(invoice['created_by']['id'], str(self.admin.pk))

        response = self.client.put(
            f"/api/invoices/{invoice['id']}",
            {'invoice_number': 'INV-9', 'professional_fees': [{'amount': 1000}], 'balance_due': 0},
            format='json',
        )
        self.assertEqual(response.data['message'], 'Invoice updated successfully')
        self.assertEqual(response.data['invoice']['status'], 'paid')

        self.assertEqual(self.client.patch(f"/api/invoices/{invoice['id']}", {}, format='json').status_code, 405)

        response = self.client.delete(f"/api/invoices/{invoice['id']}")
        self.assertEqual(response.data['message'], 'Invoice deleted successfully')
        self.assertFalse(Invoice.objects.filter(invoice_number='INV-9').exists())
