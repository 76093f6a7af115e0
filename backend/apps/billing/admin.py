"""Admin registration for billing."""

from django.contrib import admin

from apps.billing.models import Subscription, SubscriptionPlan, UsageMetric


class UsageMetricInline(admin.TabularInline):
    model = UsageMetric
    extra = 0
    readonly_fields = ["last_updated"]


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ["user", "plan_name", "status", "current_period_end", "cancel_at_period_end"]
    list_filter = ["status", "plan_name"]
    search_fields = ["user__email", "stripe_customer_id", "stripe_subscription_id"]
    readonly_fields = ["stripe_customer_id", "stripe_subscription_id", "created_at", "updated_at"]
    inlines = [UsageMetricInline]


@admin.register(SubscriptionPlan)
class SubscriptionPlanAdmin(admin.ModelAdmin):
    list_display = ["name", "display_name", "price", "billing_cycle", "is_active"]
    list_filter = ["is_active", "billing_cycle"]
