from fastapi import APIRouter, Depends, Query

from src.api.models.request_models import PlaceOrderRequest, RentNumberRequest
from src.api.models.response_models import (
    OrderListResponse,
    OrderResponse,
    RentalListResponse,
    RentalResponse,
    ServiceListResponse,
)
from src.core.dependencies import (
    get_order_repository,
    get_order_tracker,
    get_rental_repository,
    get_rental_tracker,
    get_service_repository,
    get_user_repository,
    require_session_user,
)
from src.core.service.auth.models.session import SessionData
from src.core.service.purchase.purchase_service import PurchaseService
from src.core.service.tracking.order_tracker import OrderTracker
from src.core.service.tracking.rental_tracker import RentalTracker
from src.infra.repository.order_repository import OrderRepository
from src.infra.repository.rental_repository import RentalRepository
from src.infra.repository.service_repository import ServiceRepository
from src.infra.repository.user_repository import UserRepository

router = APIRouter(
    prefix="/user",
    tags=["purchase"],
    responses={
        401: {"description": "Not signed in"},
        402: {"description": "Insufficient balance"},
        404: {"description": "Not found"},
        409: {"description": "Conflict"}
    }
)


async def get_purchase_service(
    user_repository: UserRepository = Depends(get_user_repository),
    service_repository: ServiceRepository = Depends(get_service_repository),
    rental_repository: RentalRepository = Depends(get_rental_repository),
    order_repository: OrderRepository = Depends(get_order_repository)
) -> PurchaseService:
    return PurchaseService(user_repository, service_repository, rental_repository, order_repository)


@router.get("/services", response_model=ServiceListResponse)
async def list_services(
    include_unavailable: bool = Query(default=False),
    service_repository: ServiceRepository = Depends(get_service_repository)
) -> ServiceListResponse:
    services = await service_repository.list_services(available_only=not include_unavailable)
    return ServiceListResponse(services=services)


@router.get("/rentals", response_model=RentalListResponse)
async def list_rentals(
    limit: int = Query(default=50, ge=1, le=200),
    session: SessionData = Depends(require_session_user),
    rental_tracker: RentalTracker = Depends(get_rental_tracker)
) -> RentalListResponse:
    return RentalListResponse(rentals=await rental_tracker.list_rentals(session.user_id, limit))


@router.post("/rentals", response_model=RentalResponse, status_code=201)
async def rent_number(
    request: RentNumberRequest,
    session: SessionData = Depends(require_session_user),
    purchase_service: PurchaseService = Depends(get_purchase_service)
) -> RentalResponse:
    rental = await purchase_service.rent_number(
        session.user_id,
        request.service,
        request.duration,
        request.state
    )
    return RentalResponse(rental=rental)


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    limit: int = Query(default=50, ge=1, le=200),
    session: SessionData = Depends(require_session_user),
    order_tracker: OrderTracker = Depends(get_order_tracker)
) -> OrderListResponse:
    return OrderListResponse(orders=await order_tracker.list_orders(session.user_id, limit))


@router.post("/orders", response_model=OrderResponse, status_code=201)
async def place_order(
    request: PlaceOrderRequest,
    session: SessionData = Depends(require_session_user),
    purchase_service: PurchaseService = Depends(get_purchase_service)
) -> OrderResponse:
    order = await purchase_service.place_order(session.user_id, request.service, request.country)
    return OrderResponse(order=order)

