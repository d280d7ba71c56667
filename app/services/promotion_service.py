from typing import Optional

from bson import ObjectId
from fastapi import HTTPException

from app.core.logging import get_logger
from app.db.session import get_database
from app.models.promotion import PromotionRedemption
from app.repositories.promotion_repo import PromotionRepository
from app.repositories.user_repo import UserRepository
from app.schemas.promotion import PromotionDetail, PromotionItem, PromotionListResponse, RedeemResponse

logger = get_logger(__name__)


def insufficient_points(required: int, available: int) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=f"Insufficient points. You need {required} points and have {available}"
    )


class PromotionService:
    @staticmethod
    async def list_promotions(user_id: str, mine: bool = False) -> PromotionListResponse:
        """All active promotions, or the ones the user has redeemed when `mine` is set."""
        db = await get_database()
        repo = PromotionRepository(db)

        if not mine:
            promotions = await repo.list_active()
            return PromotionListResponse(promotions=[PromotionItem.from_promotion(p) for p in promotions])

        user = await UserRepository(db).get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        promotions = await repo.list_redeemed(user_id)
        return PromotionListResponse(
            user_points=user.green_points,
            promotions=[PromotionItem.from_promotion(p) for p in promotions],
        )

    @staticmethod
    async def get_promotion(promotion_id: str, user_id: str) -> PromotionDetail:
        db = await get_database()
        repo = PromotionRepository(db)

        promotion = await repo.get_promotion(promotion_id)
        if not promotion:
            raise HTTPException(status_code=404, detail="Promotion not found")

        redemption = await repo.get_redemption(user_id, promotion_id)
        return PromotionDetail.from_promotion(
            promotion,
            available=redemption is not None,
            used_at=redemption.used_at if redemption else None,
            details=redemption.details if redemption else None,
        )

    @staticmethod
    async def redeem(promotion_id: str, user_id: str, description: Optional[str] = None) -> RedeemResponse:
        """Spend the promotion's required green points"""
        db = await get_database()
        users = UserRepository(db)
        repo = PromotionRepository(db)

        user = await users.get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        promotion = await repo.get_promotion(promotion_id)
        if not promotion:
            raise HTTPException(status_code=404, detail="Promotion not found")

        if not promotion.active:
            raise HTTPException(status_code=400, detail="Promotion is not active")

        required = promotion.required_receipts
        if user.green_points < required:
            raise insufficient_points(required, user.green_points)

        # Conditional decrement; a concurrent redeem may have spent the balance since the read above.
        updated = await users.spend_green_points(user_id, required)
        if updated is None:
            current = await users.get_user_by_id(user_id)
            raise insufficient_points(required, current.green_points if current else 0)

        try:
            redemption = await repo.create_redemption(PromotionRedemption(
                user_id=ObjectId(user_id),
                promotion_id=promotion.id,
                points_spent=required,
                details=description,
            ))
        except Exception:
            logger.error("Recording redemption of %s for user %s failed, refunding %d points",
                         promotion_id, user_id, required)
            await users.add_green_points(user_id, required)
            raise
        logger.info("User %s redeemed promotion %s for %d points", user_id, promotion_id, required)

        return RedeemResponse(
            promotion_id=str(promotion.id),
            points_spent=required,
            remaining_points=updated.green_points,
            used_at=redemption.used_at,
        )
