from uuid import UUID

from fastapi import APIRouter, Depends

from src.api.models.request_models import ResolveOrderRequest
from src.api.models.response_models import OrderResponse
from src.api.router.purchase import get_purchase_service
from src.core.dependencies import require_provisioning_client
from src.core.logger.logger import get_logger
from src.core.service.purchase.purchase_service import PurchaseService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/provisioning",
    tags=["provisioning"],
    dependencies=[Depends(require_provisioning_client)],
    responses={
        403: {"description": "Provisioning credential required"},
        404: {"description": "Order not found"},
        409: {"description": "Order already resolved"}
    }
)


@router.patch("/orders/{order_id}", response_model=OrderResponse)
async def resolve_order(
    order_id: UUID,
    request: ResolveOrderRequest,
    purchase_service: PurchaseService = Depends(get_purchase_service)
) -> OrderResponse:
    """Called by the provisioning flow once an SMS arrives or the order times out."""
    order = await purchase_service.resolve_order(order_id, request.status, request.number)

    logger.info("Order resolved by provisioning", extra={"order_id": str(order_id), "status": order.status})
    return OrderResponse(order=order)
