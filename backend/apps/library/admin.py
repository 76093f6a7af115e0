"""Admin registration for library items."""

from django.contrib import admin

from apps.library.models import LibraryItem


@admin.register(LibraryItem)
class LibraryItemAdmin(admin.ModelAdmin):
    list_display = ["item_name", "type", "unit_price", "unit", "is_active", "user"]
    list_filter = ["type", "is_active"]
    search_fields = ["item_name", "description", "user__email"]
