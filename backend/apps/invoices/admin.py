"""Admin registration for invoices."""

from django.contrib import admin

from apps.invoices.models import Invoice, InvoiceItem


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ["amount"]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ["invoice_number", "customer_name", "status", "total_amount", "user", "issue_date"]
    list_filter = ["status"]
    search_fields = ["invoice_number", "customer_name", "customer_email", "user__email"]
    readonly_fields = ["public_token", "subtotal", "tax_amount", "total_amount"]
    inlines = [InvoiceItemInline]
