"""
Invoice arithmetic and status inference (no database access)
"""
import math
from datetime import date
from typing import Any, Dict, List, Optional

from django.utils import timezone

from apps.common.utils import parse_date_value, to_float, trim

from .models import InvoiceStatus

DUE_SOON_DAYS = 7
PAYMENT_DUE_RATIO = 0.6


def parse_amount(value: Any, fallback: float = 0.0) -> float:
    """``value`` as a finite float; blanks, junk, NaN and infinities give ``fallback``."""
    if value is None or value == '':
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return number


def normalize_line_items(items: Any) -> List[Dict[str, Any]]:
    """
    Clean a list of ``{date, particulars, amount}`` rows.

    ``description`` stands in for missing particulars. Rows with no
    particulars, no amount and no date are dropped.
    """
    if not isinstance(items, list):
        return []
    rows = []
    for item in items:
        if not isinstance(item, dict):
            item = {}
        parsed = parse_date_value(item.get('date'))
        row = {
            'date': parsed.isoformat() if parsed else None,
            'particulars': trim(item.get('particulars') or item.get('description')),
            'amount': parse_amount(item.get('amount')),
        }
        if row['particulars'] or row['amount'] or row['date']:
            rows.append(row)
    return rows


def compute_total(items: List[Dict[str, Any]]) -> float:
    return sum(to_float(item.get('amount')) for item in items)


def compute_totals(professional_fees, expenses, government_fees, advance_amount) -> Dict[str, float]:
    """
    The advance is applied against expenses only; whatever it does not
    cover carries over as ``advance_balance``.
    """
    professional_total = compute_total(professional_fees)
    expenses_total = compute_total(expenses)
    government_total = compute_total(government_fees)

    advance_amount = max(advance_amount, 0)
    advance_applied = min(advance_amount, expenses_total)
    net_expenses_total = max(expenses_total - advance_applied, 0)
    return {
        'professional_fees_total': professional_total,
        'expenses_total': expenses_total,
        'government_fees_total': government_total,
        'advance_amount': advance_amount,
        'advance_applied': advance_applied,
        'advance_balance': max(advance_amount - advance_applied, 0),
        'net_expenses_total': net_expenses_total,
        'gross_total_amount': professional_total + expenses_total + government_total,
        'total_amount': professional_total + government_total + net_expenses_total,
    }


def infer_invoice_status(total: Any, balance: Any, due_date: Any, today: Optional[date] = None) -> str:
    total = max(to_float(total), 0)
    balance = max(to_float(balance), 0)
    if not total or balance <= 0:
        return InvoiceStatus.PAID

    due = parse_date_value(due_date)
    if due is None:
        return InvoiceStatus.PAYMENT_DUE

    today = today or timezone.localdate()
    days_left = (due - today).days
    if days_left < 0:
        return InvoiceStatus.OVERDUE
    if days_left <= DUE_SOON_DAYS:
        return InvoiceStatus.DUE_SOON
    if balance / total >= PAYMENT_DUE_RATIO:
        return InvoiceStatus.PAYMENT_DUE
    return InvoiceStatus.PARTIAL


def invoice_progress(total: Any, balance: Any) -> float:
    """Share of the total already paid, clamped to [0, 1]."""
    total = max(to_float(total), 0)
    balance = max(to_float(balance), 0)
    if total <= 0:
        return 0
    return min(max((total - balance) / total, 0), 1)
