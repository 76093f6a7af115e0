"""Admin registration for user profiles."""

from django.contrib import admin

from apps.accounts.models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ["email", "full_name", "company_name", "created_at"]
    search_fields = ["email", "full_name", "company_name"]
    readonly_fields = ["id", "created_at", "updated_at"]
