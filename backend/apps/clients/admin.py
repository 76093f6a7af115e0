"""Admin registration for clients."""

from django.contrib import admin

from apps.clients.models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "client_type", "user", "created_at"]
    list_filter = ["client_type"]
    search_fields = ["name", "email", "user__email"]
