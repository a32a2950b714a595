from datetime import datetime

import pytest

from cephas.schemas.enums import InvoiceStatus
from cephas.selectors import invoices
from cephas.state import build_state

NOW = datetime(2025, 4, 15, 9, 0)


@pytest.fixture
def state():
    return build_state(
        invoices=[
            {"id": 1, "invoiceNumber": "INV-001", "customer": "Ahmad", "description": "FTTH Installation",
             "serviceInstallerId": 7, "date": "2025-04-02T10:00:00", "dueDate": "2025-05-02T00:00:00",
             "status": "pending", "totalAmount": 999,
             "items": [{"description": "Drop cable", "quantity": 2, "rate": 50},
                       {"description": "Labour", "quantity": 1, "rate": 150}]},
            {"id": 2, "invoiceNumber": "INV-002", "customer": "Lee", "description": "FTTH Installation",
             "serviceInstallerId": 7, "date": "2025-03-01T10:00:00", "dueDate": "2025-03-31T00:00:00",
             "status": "pending", "totalAmount": 120},
            {"id": 3, "invoiceNumber": "INV-003", "customer": "Chong", "description": "Fiber Repair",
             "serviceInstallerId": 8, "date": "2025-02-10T10:00:00", "status": "PAID",
             "paymentDate": "2025-03-05T12:00:00", "totalAmount": 300},
            {"id": 4, "invoiceNumber": "INV-004", "customer": "Ravi", "description": "FTTH Installation",
             "serviceInstallerId": 7, "date": "2025-04-10T10:00:00", "status": "paid",
             "paymentDate": "2025-04-12T12:00:00", "totalAmount": 450, "notes": "paid by transfer"},
            {"id": 5, "invoiceNumber": "INV-005", "customer": "Siti", "serviceInstallerId": 7,
             "date": "2025-04-11T10:00:00", "status": "cancelled", "totalAmount": 80},
        ]
    )


def test_line_items_win_over_stored_total(state):
    assert invoices.invoice_amount(invoices.get_invoice_by_id(state, 1)) == 250
    assert invoices.invoice_amount(invoices.get_invoice_by_id(state, 2)) == 120


def test_pending_past_due_date_reads_as_overdue(state):
    second = invoices.get_invoice_by_number(state, "INV-002")
    assert invoices.invoice_status(second, NOW) == InvoiceStatus.overdue
    assert invoices.invoice_status(second, datetime(2025, 3, 30)) == InvoiceStatus.pending
    assert [i.invoice_number for i in invoices.get_overdue_invoices(state, NOW)] == ["INV-002"]


def test_status_counts_cover_every_invoice(state):
    counts = invoices.get_invoice_status_counts(state, NOW)
    assert counts == {"pending": 1, "paid": 2, "overdue": 1, "cancelled": 1, "total": 5}
    assert sum(v for k, v in counts.items() if k != "total") == counts["total"]


def test_statistics(state):
    stats = invoices.get_invoice_statistics(state, NOW)
    assert stats.total == 5
    assert stats.this_month == 3
    assert stats.total_revenue == 750
    assert stats.outstanding_amount == 370
    assert stats.overdue_amount == 120
    assert stats.collection_rate == pytest.approx(750 / 1120 * 100, abs=0.01)


def test_revenue_is_booked_on_payment_date(state):
    assert invoices.get_revenue_by_month(state) == {"2025-03": 300, "2025-04": 450}
    assert invoices.get_total_revenue(state) == 750
    assert invoices.get_total_revenue(state, "2025-04-01T00:00:00", "2025-04-30T23:59:59") == 450


def test_revenue_by_service_type(state):
    breakdown = invoices.get_revenue_by_service_type(state)
    assert breakdown == {
        "Fiber Repair": {"revenue": 300, "count": 1},
        "FTTH Installation": {"revenue": 450, "count": 1},
    }
    assert invoices.get_invoice_description_counts(state)["Other Service"] == 1


@pytest.mark.parametrize(
    "criteria, expected",
    [
        ({}, ["INV-001", "INV-002", "INV-003", "INV-004", "INV-005"]),
        ({"status": "pending"}, ["INV-001"]),
        ({"status": ["overdue", "paid"]}, ["INV-002", "INV-003", "INV-004"]),
        ({"date_from": "2025-04-01T00:00:00"}, ["INV-001", "INV-004", "INV-005"]),
        ({"min_amount": 200, "max_amount": 400}, ["INV-001", "INV-003"]),
        ({"status": "paid", "min_amount": 400}, ["INV-004"]),
    ],
)
def test_filter_combines_criteria_with_and(state, criteria, expected):
    found = invoices.filter_invoices(state, now=NOW, **criteria)
    assert [i.invoice_number for i in found] == expected


def test_installer_income_skips_cancelled(state):
    income = invoices.get_installer_income(state, ["7"], NOW)
    assert income.invoice_count == 3
    assert income.paid_amount == 450
    assert income.pending_amount == 370
    assert income.this_month_amount == 700
    assert invoices.get_installer_income(state, [], NOW).invoice_count == 0


def test_search_and_recent(state):
    assert [i.invoice_number for i in invoices.search_invoices(state, "transfer")] == ["INV-004"]
    assert [i.invoice_number for i in invoices.search_invoices(state, "inv-00")][:2] == ["INV-001", "INV-002"]
    recent = invoices.get_recent_invoices(state, limit=2)
    assert [i.invoice_number for i in recent] == ["INV-005", "INV-004"]
    assert len(invoices.get_invoices_by_service_installer(state, 7)) == 4
