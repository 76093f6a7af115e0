"""
Dashboard API endpoints.
"""

from django.http import HttpRequest
from ninja import Router

from apps.core.auth import require_user
from apps.core.schemas import ErrorResponse
from apps.core.security import bearer_auth
from apps.dashboard.schemas import DashboardSummaryResponse
from apps.dashboard.services import get_summary

router = Router(tags=["dashboard"])


@router.get(
    "/summary",
    response={200: DashboardSummaryResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getDashboardSummary",
    summary="Dashboard summary",
)
def dashboard_summary(request: HttpRequest) -> dict:
    return get_summary(require_user(request))
