from uuid import UUID

from fastapi import APIRouter, Depends

from src.api.models.request_models import BalanceTopUpRequest, RoleChangeRequest
from src.api.models.response_models import AccountResponse, RentalExpiredResponse
from src.core.dependencies import get_rental_repository, get_user_repository, require_admin
from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.core.service.auth.models.user import User
from src.core.service.tracking.models import RentalStatus
from src.infra.repository.rental_repository import RentalRepository
from src.infra.repository.user_repository import UserRepository

logger = get_logger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={
        401: {"description": "Not signed in"},
        403: {"description": "Admin access required"},
        404: {"description": "Not found"}
    }
)


def _user_not_found(email: str) -> ServiceError:
    return ServiceError(
        code=ServiceErrorCode.NOT_FOUND,
        message=f"No user with email {email}",
        status_code=404
    )


@router.post("/users/{email}/balance", response_model=AccountResponse)
async def top_up_balance(
    email: str,
    request: BalanceTopUpRequest,
    admin: User = Depends(require_admin),
    user_repository: UserRepository = Depends(get_user_repository)
) -> AccountResponse:
    # The target's cached session snapshot keeps the old balance until it expires
    user = await user_repository.credit_balance(email, request.amount)
    if user is None:
        raise _user_not_found(email)

    logger.info("Balance top-up", extra={"admin": admin.email, "email": email, "amount": str(request.amount)})
    return AccountResponse.from_user(user)


@router.put("/users/{email}/role", response_model=AccountResponse)
async def change_role(
    email: str,
    request: RoleChangeRequest,
    admin: User = Depends(require_admin),
    user_repository: UserRepository = Depends(get_user_repository)
) -> AccountResponse:
    user = await user_repository.set_role(email, request.role)
    if user is None:
        raise _user_not_found(email)

    logger.info("Role change", extra={"admin": admin.email, "email": email, "role": request.role.value})
    return AccountResponse.from_user(user)


@router.post("/rentals/{rental_id}/expire", response_model=RentalExpiredResponse)
async def expire_rental(
    rental_id: UUID,
    admin: User = Depends(require_admin),
    rental_repository: RentalRepository = Depends(get_rental_repository)
) -> RentalExpiredResponse:
    """Write the terminal expired label; already-expired rentals are left as they are."""
    rental = await rental_repository.get_by_id(rental_id)
    if rental is None:
        raise ServiceError(
            code=ServiceErrorCode.NOT_FOUND,
            message="Rental not found",
            status_code=404
        )

    await rental_repository.mark_expired(rental_id)
    return RentalExpiredResponse(rental_id=rental_id, status=RentalStatus.EXPIRED.value)
