from typing import Optional

from fastapi import APIRouter, Body, Depends

from app.core.auth import get_current_user
from app.models.user import User
from app.schemas.promotion import PromotionDetail, PromotionListResponse, RedeemRequest, RedeemResponse
from app.services.promotion_service import PromotionService

router = APIRouter()


@router.get("", response_model=PromotionListResponse)
async def list_promotions(
    mine: bool = False,
    current_user: User = Depends(get_current_user)
):
    """Active promotions, or the user's redeemed ones with mine=true"""
    return await PromotionService.list_promotions(str(current_user.id), mine=mine)


@router.get("/{promotion_id}", response_model=PromotionDetail)
async def get_promotion(
    promotion_id: str,
    current_user: User = Depends(get_current_user)
):
    return await PromotionService.get_promotion(promotion_id, str(current_user.id))


@router.post("/{promotion_id}/redeem", response_model=RedeemResponse)
async def redeem_promotion(
    promotion_id: str,
    request: Optional[RedeemRequest] = Body(None),
    current_user: User = Depends(get_current_user)
):
    """Redeem a promotion with green points"""
    description = request.description if request else None
    return await PromotionService.redeem(promotion_id, str(current_user.id), description)
