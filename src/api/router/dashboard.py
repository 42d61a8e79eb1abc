from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from src.api.controller.dashboard.dashboard_controller import DashboardController
from src.api.models.response_models import DashboardResponse
from src.api.utils.views import render_view
from src.core.dependencies import (
    get_current_snapshot,
    get_order_tracker,
    get_rental_tracker,
    get_session,
    require_session_user,
)
from src.core.service.auth.models.session import SessionData
from src.core.service.identity.models import UserSnapshot
from src.core.service.tracking.order_tracker import OrderTracker
from src.core.service.tracking.rental_tracker import RentalTracker

router = APIRouter(prefix="/user", tags=["dashboard"])


async def get_dashboard_controller(
    rental_tracker: RentalTracker = Depends(get_rental_tracker),
    order_tracker: OrderTracker = Depends(get_order_tracker)
) -> DashboardController:
    return DashboardController(rental_tracker, order_tracker)


@router.get("/dashboard", include_in_schema=False)
async def dashboard_page(
    request: Request,
    session: SessionData = Depends(get_session),
    controller: DashboardController = Depends(get_dashboard_controller)
):
    """Server-rendered dashboard; anonymous visitors go to the landing page."""
    if not session.is_authenticated:
        return RedirectResponse("/", status_code=303)

    dashboard = await controller.get_dashboard(session.user_id)
    return render_view(request, "dashboard.html", {
        "stats": dashboard.stats,
        "rentals": dashboard.recent_rentals,
        "orders": dashboard.recent_orders,
    })


@router.get("/api/dashboard", response_model=DashboardResponse)
async def dashboard_data(
    session: SessionData = Depends(require_session_user),
    user: Optional[UserSnapshot] = Depends(get_current_snapshot),
    controller: DashboardController = Depends(get_dashboard_controller)
) -> DashboardResponse:
    dashboard = await controller.get_dashboard(session.user_id)
    return DashboardResponse(
        user=user,
        stats=dashboard.stats,
        recent_rentals=dashboard.recent_rentals,
        recent_orders=dashboard.recent_orders
    )
