from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from charlieverse.dependencies import AuthServiceDep, require_action
from charlieverse.models.api import ProfileUpdateRequest
from charlieverse.models.user import Principal, User
from charlieverse.services.authorization import Action

router = APIRouter(prefix="/user", tags=["users"])

ProfileEditor = Annotated[Principal, Depends(require_action(Action.UPDATE_PROFILE))]


@router.put("/profile", response_model=User)
async def update_profile(
    payload: ProfileUpdateRequest,
    principal: ProfileEditor,
    service: AuthServiceDep,
) -> User:
    return await service.update_profile(principal, payload)
