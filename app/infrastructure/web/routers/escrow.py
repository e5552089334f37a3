"""
Escrow router.
Hold, release, refund and dispute operations on contract escrows.
"""

from typing import Annotated
from fastapi import APIRouter, Depends, Path, status

from app.domain.models.user import User
from app.domain.repositories.unit_of_work import UnitOfWork
from app.infrastructure.auth import get_current_user
from app.infrastructure.rate_limiting import payment_rate_limit
from app.infrastructure.repositories.provider import get_unit_of_work
from app.application.use_cases.escrow_use_cases import (
    HoldFundsUseCase,
    ReleaseFundsUseCase,
    RefundFundsUseCase,
    DisputeEscrowUseCase,
    ResolveDisputeUseCase,
    GetEscrowUseCase
)
from app.application.dto.escrow_dto import (
    HoldFundsRequestDTO,
    ReleaseFundsRequestDTO,
    RefundFundsRequestDTO,
    DisputeRequestDTO,
    ResolveDisputeRequestDTO,
    GetEscrowRequestDTO,
    EscrowResponseDTO,
    EscrowOperationResponseDTO
)
from .responses import unwrap


router = APIRouter()


@router.post("/hold", status_code=status.HTTP_201_CREATED, response_model=EscrowOperationResponseDTO)
@router.post("/create", status_code=status.HTTP_201_CREATED, response_model=EscrowOperationResponseDTO,
             include_in_schema=False)
async def hold_funds(
    request: HoldFundsRequestDTO,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    _: None = Depends(payment_rate_limit)
):
    """
    Fund a contract's escrow from the client's wallet.

    - **contractId**: Contract to fund
    - **amount**: Positive amount in minor units
    - **supervisorId**: Optional supervisor, recorded when the escrow is created
    """
    use_case = HoldFundsUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.post("/release", response_model=EscrowOperationResponseDTO)
async def release_funds(
    request: ReleaseFundsRequestDTO,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    _: None = Depends(payment_rate_limit)
):
    """
    Pay escrowed funds out to the freelancer.
    Allowed for the client, admin, QA and the designated supervisor.
    """
    use_case = ReleaseFundsUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.post("/refund", response_model=EscrowOperationResponseDTO)
async def refund_funds(
    request: RefundFundsRequestDTO,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    _: None = Depends(payment_rate_limit)
):
    """Return escrowed funds to the client."""
    use_case = RefundFundsUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.post("/dispute", response_model=EscrowOperationResponseDTO)
async def dispute_escrow(
    request: DisputeRequestDTO,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)]
):
    """Freeze an active escrow until the dispute is resolved."""
    use_case = DisputeEscrowUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.post("/resolve", response_model=EscrowOperationResponseDTO)
async def resolve_dispute(
    request: ResolveDisputeRequestDTO,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)]
):
    use_case = ResolveDisputeUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.get("/{contract_id}", response_model=EscrowResponseDTO)
async def get_escrow(
    contract_id: Annotated[int, Path(gt=0)],
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)]
):
    """Escrow account of a contract, visible to its parties, supervisor and staff."""
    use_case = GetEscrowUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(GetEscrowRequestDTO(contract_id=contract_id)))
