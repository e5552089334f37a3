"""
Activity feed router.
"""

from typing import Annotated, List
from fastapi import APIRouter, Depends, Query

from app.domain.models.user import User
from app.domain.repositories.unit_of_work import UnitOfWork
from app.infrastructure.auth import get_current_user
from app.infrastructure.repositories.provider import get_unit_of_work
from app.application.use_cases.auth_use_cases import ListActivitiesUseCase
from app.application.dto.auth_dto import ActivityResponseDTO
from .responses import unwrap


router = APIRouter()


@router.get("", response_model=List[ActivityResponseDTO])
async def list_activities(
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    limit: int = Query(10, ge=1, le=100, description="Maximum entries to return")
):
    """Most recent wallet and escrow activity of the authenticated user."""
    use_case = ListActivitiesUseCase(uow).set_current_user(current_user)
    activities = unwrap(await use_case.execute(limit))
    return [ActivityResponseDTO.from_entity(activity) for activity in activities]
