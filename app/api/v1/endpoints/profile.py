from fastapi import APIRouter, Depends

from app.core.auth import get_current_user
from app.models.user import User
from app.schemas.user import ProfileResponse, ProfileUpdate, UserResponse
from app.services.profile_service import ProfileService

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get the current user's profile and receipt stats"""
    return await ProfileService.get_profile(str(current_user.id))


@router.patch("", response_model=UserResponse)
async def update_profile(
    profile_in: ProfileUpdate,
    current_user: User = Depends(get_current_user)
):
    """Update first/last name"""
    return await ProfileService.update_profile(str(current_user.id), profile_in)
