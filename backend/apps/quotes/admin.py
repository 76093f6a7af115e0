"""Admin registration for quotes."""

from django.contrib import admin

from apps.quotes.models import Quote, QuoteItem


class QuoteItemInline(admin.TabularInline):
    model = QuoteItem
    extra = 0
    readonly_fields = ["amount"]


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ["quote_number", "client_name", "status", "total_amount", "user", "issue_date"]
    list_filter = ["status"]
    search_fields = ["quote_number", "client_name", "client_email", "user__email"]
    readonly_fields = ["public_token", "subtotal", "tax_amount", "total_amount", "converted_invoice"]
    inlines = [QuoteItemInline]
