from fastapi import APIRouter, Depends

from app.core.auth import get_current_user
from app.models.user import User
from app.schemas.home import HomeResponse
from app.services.home_service import HomeService

router = APIRouter()


@router.get("", response_model=HomeResponse)
async def get_home(current_user: User = Depends(get_current_user)):
    """Green points, accumulated CO2, last receipt and featured promotions"""
    return await HomeService.get_home(str(current_user.id))
