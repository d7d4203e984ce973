"""
Profile endpoints.

Read and update the authenticated account's profile.
"""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from itpnotify.services.user_auth_service import MSG_PROFILE_UPDATED

from ..deps import ServicesDep, CurrentAccount
from .auth import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class ProfileUpdateRequest(BaseModel):
    """Editable profile fields; omitted fields are left unchanged."""
    nume: Optional[str] = Field(None, description="Surname")
    prenume: Optional[str] = Field(None, description="Given name")
    nrTelefon: Optional[str] = Field(None, description="Romanian phone number")


class ProfileResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    user: UserResponse


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_account: CurrentAccount):
    """Get the current account's profile."""
    return {"success": True, "user": current_account.to_public_dict()}


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    current_account: CurrentAccount,
    services: ServicesDep
):
    """
    Update name or phone.

    A phone already used by another account is rejected.
    """
    account = await services.user_auth.update_profile(
        current_account.account_id,
        surname=request.nume,
        given_name=request.prenume,
        phone=request.nrTelefon
    )
    return {"success": True, "message": MSG_PROFILE_UPDATED, "user": account.to_public_dict()}
