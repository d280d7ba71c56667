from fastapi import HTTPException

from app.db.session import get_database
from app.repositories.promotion_repo import PromotionRepository
from app.repositories.receipt_repo import ReceiptRepository
from app.repositories.user_repo import UserRepository
from app.schemas.home import HomeResponse, LastReceipt, PromotionPreview

HOME_PROMOTIONS = 2


class HomeService:
    @staticmethod
    async def get_home(user_id: str) -> HomeResponse:
        db = await get_database()
        user = await UserRepository(db).get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        receipts = await ReceiptRepository(db).list_receipts(user_id)
        promotions = await PromotionRepository(db).list_active(limit=HOME_PROMOTIONS)

        last_receipt = None
        if receipts:
            latest = receipts[0]
            last_receipt = LastReceipt(
                store_name=latest.store_name,
                co2_total=round(latest.co2_total, 2),
                receipt_date=latest.receipt_date,
                total_price=latest.total_price,
            )

        return HomeResponse(
            green_points=user.green_points,
            co2_accumulated=round(sum(r.co2_total for r in receipts), 2),
            last_receipt=last_receipt,
            promotions=[
                PromotionPreview(title=p.title, promotion_type=p.promotion_type)
                for p in promotions
            ],
        )
