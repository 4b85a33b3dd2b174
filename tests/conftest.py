from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from clients.models import Client
from expenses.models import Expense
from hrm.models import Employee, SalaryPayment
from invoices.models import Invoice
from leads.models import Lead

MID_Q1_2025 = datetime(2025, 2, 15, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def regular_user(db):
    return get_user_model().objects.create_user(
        username="sales",
        email="sales@test.com",
        password="testpass123",
    )


@pytest.fixture
def staff_user(db):
    return get_user_model().objects.create_user(
        username="owner",
        email="owner@test.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture
def employee(db):
    return Employee.objects.create(
        employee_number="EMP-001",
        name="Ayesha Khan",
        position="Developer",
        department="Engineering",
        salary=Decimal("10000.00"),
    )


@pytest.fixture
def make_lead(db):
    def _make(name="Lead", status=Lead.Status.NEW, created_at=None):
        lead = Lead.objects.create(name=name, status=status)
        if created_at is not None:
            # created_at is auto_now_add; backdate it explicitly.
            Lead.objects.filter(pk=lead.pk).update(created_at=created_at)
            lead.refresh_from_db()
        return lead

    return _make


@pytest.fixture
def q1_2025(db, employee, make_lead):
    """One row of each kind inside Q1-2025.

    Revenue 20000, expenses 1000, salaries 10000: profit 9000, margin 45.0.
    """
    client = Client.objects.create(
        name="Bilal Ahmed",
        company="Acme Traders",
        start_date=date(2025, 2, 1),
        number_of_projects=2,
    )
    invoice = Invoice.objects.create(
        client=client,
        client_name=client.name,
        invoice_number="INV-2025-0001",
        issue_date=date(2025, 1, 20),
        due_date=date(2025, 2, 20),
        amount=Decimal("20000.00"),
        status=Invoice.Status.PAID,
        paid_date=date(2025, 2, 1),
    )
    expense = Expense.objects.create(
        date=date(2025, 2, 10),
        description="Hosting",
        category="Software",
        amount=Decimal("1000.00"),
    )
    salary = SalaryPayment.objects.create(
        employee=employee,
        month="2025-01",
        amount=Decimal("10000.00"),
        net_amount=Decimal("10000.00"),
        status=SalaryPayment.Status.PAID,
    )
    lead = make_lead(
        name="Converted lead",
        status=Lead.Status.CONVERTED,
        created_at=datetime(2025, 1, 15, 9, 0, tzinfo=dt_timezone.utc),
    )
    return {
        "client": client,
        "invoice": invoice,
        "expense": expense,
        "salary": salary,
        "lead": lead,
    }


@pytest.fixture
def q1_now():
    """A clock reading in the middle of Q1-2025."""
    return MID_Q1_2025
