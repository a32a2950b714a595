"""
Invoice selectors.

Stored status is only part of the story: a pending invoice whose due date has
passed is reported as overdue. ``invoice_status`` is the single place that
decides, and every count, filter and total below goes through it.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..schemas.enums import InvoiceStatus
from ..schemas.records import Invoice
from ..schemas.views import IncomeSummary, InvoiceStats
from ..state import AppState
from .common import (
    AnyOf,
    error_of,
    filter_by_date_range,
    filter_by_ref,
    find_by,
    find_by_id,
    has_value,
    items_of,
    loading_of,
    local_now,
    rate,
    search,
    tally,
    to_local,
    total_count_of,
    within,
)

INVOICE_SEARCH_FIELDS = ("invoice_number", "submission_number", "customer", "description", "notes")
RECENT_INVOICES_LIMIT = 5


def invoice_amount(invoice: Invoice) -> float:
    """Line items win over the stored total when there are any."""
    if invoice.items:
        return round(sum((i.quantity or 0) * (i.rate or 0) for i in invoice.items), 2)
    return invoice.total_amount or 0


def invoice_status(invoice: Invoice, now: Optional[datetime] = None) -> InvoiceStatus:
    stored = InvoiceStatus.parse(invoice.status) or InvoiceStatus.pending
    if stored != InvoiceStatus.pending:
        return stored
    due = to_local(invoice.due_date)
    if due is not None and due < local_now(now):
        return InvoiceStatus.overdue
    return stored


def get_invoices_list(state: AppState) -> List[Invoice]:
    return items_of(state, "invoices")


def get_invoices_loading(state: AppState) -> bool:
    return loading_of(state, "invoices")


def get_invoices_error(state: AppState) -> Optional[str]:
    return error_of(state, "invoices")


def get_total_invoices_count(state: AppState) -> int:
    return total_count_of(state, "invoices")


def get_invoice_by_id(state: AppState, invoice_id: Any) -> Optional[Invoice]:
    return find_by_id(get_invoices_list(state), invoice_id)


def get_invoice_by_number(state: AppState, invoice_number: Optional[str]) -> Optional[Invoice]:
    return find_by(get_invoices_list(state), "invoice_number", invoice_number)


def get_invoices_by_status(state: AppState, status: Any = None, now: Optional[datetime] = None) -> List[Invoice]:
    wanted = AnyOf.coerce(status)
    if wanted is None:
        return get_invoices_list(state)
    wanted = {InvoiceStatus.parse(s) for s in wanted.values}
    return [i for i in get_invoices_list(state) if invoice_status(i, now) in wanted]


def get_invoices_by_service_installer(state: AppState, installer_id: Any = None) -> List[Invoice]:
    return filter_by_ref(get_invoices_list(state), "service_installer_id", installer_id)


def get_invoices_by_date_range(state: AppState, start: Any = None, end: Any = None) -> List[Invoice]:
    return filter_by_date_range(get_invoices_list(state), "date", start, end)


def get_this_months_invoices(state: AppState, now: Optional[datetime] = None) -> List[Invoice]:
    current = local_now(now)
    result = []
    for invoice in get_invoices_list(state):
        issued = to_local(invoice.date)
        if issued is not None and (issued.year, issued.month) == (current.year, current.month):
            result.append(invoice)
    return result


def get_overdue_invoices(state: AppState, now: Optional[datetime] = None) -> List[Invoice]:
    return get_invoices_by_status(state, InvoiceStatus.overdue, now)


def get_recent_invoices(state: AppState, limit: int = RECENT_INVOICES_LIMIT) -> List[Invoice]:
    dated = [i for i in get_invoices_list(state) if to_local(i.date) is not None]
    dated.sort(key=lambda i: to_local(i.date), reverse=True)
    undated = [i for i in get_invoices_list(state) if to_local(i.date) is None]
    return (dated + undated)[:limit]


def get_invoice_status_counts(state: AppState, now: Optional[datetime] = None) -> Dict[str, int]:
    invoices = get_invoices_list(state)
    counts = {s.value: 0 for s in InvoiceStatus}
    counts["total"] = len(invoices)
    for invoice in invoices:
        counts[invoice_status(invoice, now).value] += 1
    return counts


def get_invoice_statistics(state: AppState, now: Optional[datetime] = None) -> InvoiceStats:
    counts = get_invoice_status_counts(state, now)
    paid = outstanding = overdue = 0.0
    for invoice in get_invoices_list(state):
        status = invoice_status(invoice, now)
        amount = invoice_amount(invoice)
        if status == InvoiceStatus.paid:
            paid += amount
        elif status in (InvoiceStatus.pending, InvoiceStatus.overdue):
            outstanding += amount
            if status == InvoiceStatus.overdue:
                overdue += amount
    return InvoiceStats(
        total=counts["total"],
        pending=counts[InvoiceStatus.pending.value],
        paid=counts[InvoiceStatus.paid.value],
        overdue=counts[InvoiceStatus.overdue.value],
        cancelled=counts[InvoiceStatus.cancelled.value],
        this_month=len(get_this_months_invoices(state, now)),
        total_revenue=round(paid, 2),
        outstanding_amount=round(outstanding, 2),
        overdue_amount=round(overdue, 2),
        collection_rate=rate(paid, paid + outstanding),
    )


def _booked_on(invoice: Invoice) -> Optional[datetime]:
    # revenue is booked on the payment date, falling back to the invoice date
    return to_local(invoice.payment_date) or to_local(invoice.date)


def _paid(state: AppState, start: Any = None, end: Any = None) -> List[Invoice]:
    paid = [i for i in get_invoices_list(state) if InvoiceStatus.parse(i.status) == InvoiceStatus.paid]
    lower = to_local(start) if has_value(start) else None
    upper = to_local(end) if has_value(end) else None
    if lower is None and upper is None:
        return paid
    return [i for i in paid if within(_booked_on(i), lower, upper)]


def get_revenue_by_month(state: AppState, start: Any = None, end: Any = None) -> Dict[str, float]:
    """Paid amounts keyed by ``YYYY-MM`` of the booking date, oldest month first."""
    totals: Dict[str, float] = {}
    for invoice in _paid(state, start, end):
        booked = _booked_on(invoice)
        if booked is None:
            continue
        key = f"{booked:%Y-%m}"
        totals[key] = round(totals.get(key, 0) + invoice_amount(invoice), 2)
    return dict(sorted(totals.items()))


def get_revenue_by_service_type(state: AppState, start: Any = None, end: Any = None) -> Dict[str, Dict[str, float]]:
    breakdown: Dict[str, Dict[str, float]] = {}
    for invoice in _paid(state, start, end):
        entry = breakdown.setdefault(invoice.description or "Other Service", {"revenue": 0.0, "count": 0})
        entry["revenue"] = round(entry["revenue"] + invoice_amount(invoice), 2)
        entry["count"] += 1
    return breakdown


def get_total_revenue(state: AppState, start: Any = None, end: Any = None) -> float:
    return round(sum(invoice_amount(i) for i in _paid(state, start, end)), 2)


def get_invoice_description_counts(state: AppState) -> Dict[str, int]:
    return tally(get_invoices_list(state), lambda i: i.description or "Other Service")


def get_installer_income(
    state: AppState,
    installer_ids: Iterable[Any] = (),
    now: Optional[datetime] = None,
) -> IncomeSummary:
    """Income of the installer profiles in ``installer_ids``; cancelled invoices are left out."""
    ids = {str(i) for i in installer_ids}
    current = local_now(now)
    summary = IncomeSummary()
    for invoice in get_invoices_list(state):
        if invoice.service_installer_id is None or str(invoice.service_installer_id) not in ids:
            continue
        status = invoice_status(invoice, now)
        if status == InvoiceStatus.cancelled:
            continue
        amount = invoice_amount(invoice)
        summary.invoice_count += 1
        if status == InvoiceStatus.paid:
            summary.paid_amount = round(summary.paid_amount + amount, 2)
        else:
            summary.pending_amount = round(summary.pending_amount + amount, 2)
        issued = to_local(invoice.date)
        if issued is not None and (issued.year, issued.month) == (current.year, current.month):
            summary.this_month_amount = round(summary.this_month_amount + amount, 2)
    return summary


def search_invoices(state: AppState, query: Optional[str] = None) -> List[Invoice]:
    return search(get_invoices_list(state), query, INVOICE_SEARCH_FIELDS)


def filter_invoices(
    state: AppState,
    status: Any = None,
    date_from: Any = None,
    date_to: Any = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    now: Optional[datetime] = None,
) -> List[Invoice]:
    """All criteria combined with AND; an unset criterion does not filter."""
    candidates = {id(i) for i in get_invoices_by_status(state, status, now)}
    dated = {id(i) for i in filter_by_date_range(get_invoices_list(state), "date", date_from, date_to)}
    result = []
    for invoice in get_invoices_list(state):
        if id(invoice) not in candidates or id(invoice) not in dated:
            continue
        amount = invoice_amount(invoice)
        if min_amount is not None and amount < min_amount:
            continue
        if max_amount is not None and amount > max_amount:
            continue
        result.append(invoice)
    return result
