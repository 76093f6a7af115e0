"""
Tests for invoice services.
"""

from datetime import date
from decimal import Decimal

import pytest
from django.db import IntegrityError

from apps.core.documents import DocumentNumberTakenError
from apps.invoices.models import Invoice
from apps.invoices.services import (
    create_invoice,
    delete_invoice,
    set_invoice_status,
    update_invoice,
)
from tests.accounts.factories import UserProfileFactory
from tests.invoices.factories import InvoiceFactory


@pytest.mark.django_db
class TestCreateInvoice:
    def test_items_keep_submitted_order(self) -> None:
        user = UserProfileFactory.create()

        invoice = create_invoice(
            user,
            items=[
                {"description": description, "quantity": Decimal("1"), "unit_price": Decimal("1")}
                for description in ("Demo", "Framing", "Drywall", "Paint")
            ],
            customer_name="Acme",
        )

        descriptions = list(invoice.items.values_list("description", flat=True))
        assert descriptions == ["Demo", "Framing", "Drywall", "Paint"]

    def test_explicit_invoice_number_is_kept(self) -> None:
        user = UserProfileFactory.create()

        invoice = create_invoice(user, customer_name="Acme", invoice_number="2024-117")

        assert invoice.invoice_number == "2024-117"

    def test_number_after_delete_is_not_reused(self) -> None:
        user = UserProfileFactory.create()
        first, _, third = (create_invoice(user, customer_name=name) for name in "ABC")

        delete_invoice(first)
        fourth = create_invoice(user, customer_name="D")

        assert third.invoice_number == "INV-0003"
        assert fourth.invoice_number == "INV-0004"

    def test_numbering_ignores_custom_numbers(self) -> None:
        user = UserProfileFactory.create()
        create_invoice(user, customer_name="Acme", invoice_number="INV-0009")
        create_invoice(user, customer_name="Acme", invoice_number="INV-2024-A")

        invoice = create_invoice(user, customer_name="Acme")

        assert invoice.invoice_number == "INV-0010"

    def test_numbers_are_per_user(self) -> None:
        InvoiceFactory.create(invoice_number="INV-0042")

        invoice = create_invoice(UserProfileFactory.create(), customer_name="Acme")

        assert invoice.invoice_number == "INV-0001"

    def test_explicit_number_already_in_use_raises(self) -> None:
        user = UserProfileFactory.create()
        create_invoice(user, customer_name="Acme", invoice_number="2024-117")

        with pytest.raises(DocumentNumberTakenError):
            create_invoice(user, customer_name="Acme", invoice_number="2024-117")

        assert Invoice.objects.filter(user=user).count() == 1

    def test_issue_date_defaults_to_today(self) -> None:
        user = UserProfileFactory.create()

        invoice = create_invoice(user, customer_name="Acme", issue_date=None)

        assert invoice.issue_date == date.today()


@pytest.mark.django_db
class TestUpdateInvoice:
    def test_tax_rate_change_recalculates_from_saved_items(self) -> None:
        user = UserProfileFactory.create()
        invoice = create_invoice(
            user,
            items=[{"description": "Labor", "quantity": Decimal("2"), "unit_price": Decimal("50")}],
            customer_name="Acme",
        )

        updated = update_invoice(invoice, tax_rate=Decimal("5"))

        assert updated.subtotal == Decimal("100.00")
        assert updated.tax_amount == Decimal("5.00")
        assert updated.total_amount == Decimal("105.00")

    def test_renumbering_to_a_taken_number_raises(self) -> None:
        user = UserProfileFactory.create()
        create_invoice(user, customer_name="Acme")
        second = create_invoice(user, customer_name="Acme")

        with pytest.raises(DocumentNumberTakenError):
            update_invoice(second, invoice_number="INV-0001")

    def test_keeping_own_number_is_allowed(self) -> None:
        invoice = create_invoice(UserProfileFactory.create(), customer_name="Acme")

        updated = update_invoice(invoice, invoice_number=invoice.invoice_number, notes="Net 30")

        assert updated.notes == "Net 30"


@pytest.mark.django_db
class TestInvoiceNumberConstraint:
    def test_duplicate_number_for_same_user_is_rejected(self) -> None:
        invoice = InvoiceFactory.create(invoice_number="INV-0001")

        with pytest.raises(IntegrityError):
            InvoiceFactory.create(user=invoice.user, invoice_number="INV-0001")

    def test_same_number_for_different_users_is_allowed(self) -> None:
        InvoiceFactory.create(invoice_number="INV-0001")
        InvoiceFactory.create(invoice_number="INV-0001")

        assert Invoice.objects.filter(invoice_number="INV-0001").count() == 2

    def test_blank_numbers_do_not_collide(self) -> None:
        invoice = InvoiceFactory.create(invoice_number="")
        InvoiceFactory.create(user=invoice.user, invoice_number="")

        assert Invoice.objects.filter(user=invoice.user).count() == 2


@pytest.mark.django_db
class TestSetInvoiceStatus:
    def test_marks_invoice_paid(self) -> None:
        invoice = InvoiceFactory.create()

        assert set_invoice_status(str(invoice.id), Invoice.Status.PAID) is True

        invoice.refresh_from_db()
        assert invoice.status == Invoice.Status.PAID
        assert invoice.paid_date == date.today()

    def test_marks_invoice_overdue(self) -> None:
        invoice = InvoiceFactory.create()
        before = invoice.updated_at

        set_invoice_status(str(invoice.id), Invoice.Status.OVERDUE)

        invoice.refresh_from_db()
        assert invoice.status == Invoice.Status.OVERDUE
        assert invoice.paid_date is None
        assert invoice.updated_at >= before

    def test_unknown_invoice_returns_false(self) -> None:
        assert set_invoice_status("00000000-0000-0000-0000-000000000000", "paid") is False

    def test_malformed_id_returns_false(self) -> None:
        assert set_invoice_status("inv_123", "paid") is False
