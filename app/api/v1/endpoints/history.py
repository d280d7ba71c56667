from fastapi import APIRouter, Depends

from app.core.auth import get_current_user
from app.models.user import User
from app.schemas.history import HistoryResponse
from app.services.history_service import HistoryService

router = APIRouter()


@router.get("", response_model=HistoryResponse)
async def get_history(current_user: User = Depends(get_current_user)):
    return await HistoryService.get_history(str(current_user.id))
