"""
Dashboard API schemas.
"""

from ninja import Schema


class InvoiceStatusTotals(Schema):
    count: int
    total_amount: float


class DashboardSummaryResponse(Schema):
    outstanding: InvoiceStatusTotals
    overdue: InvoiceStatusTotals
    paid: InvoiceStatusTotals
    open_quotes: int
    clients: int
    subscription_status: str | None
    plan_name: str | None
