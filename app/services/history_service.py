from collections import Counter

from app.db.session import get_database
from app.models.receipt import ReceiptType
from app.repositories.receipt_repo import ReceiptRepository
from app.schemas.history import ActivitySummary, HistoryResponse, PurchaseItem


class HistoryService:
    @staticmethod
    async def get_history(user_id: str) -> HistoryResponse:
        """Activity summary and purchases, newest first"""
        db = await get_database()
        receipts = await ReceiptRepository(db).list_receipts(user_id)

        types = Counter(r.receipt_type for r in receipts)
        co2_total = sum(r.co2_total for r in receipts)
        count = len(receipts)

        return HistoryResponse(
            summary=ActivitySummary(
                receipt_count=count,
                green_count=types[ReceiptType.GREEN],
                yellow_count=types[ReceiptType.YELLOW],
                red_count=types[ReceiptType.RED],
                co2_total=round(co2_total, 2),
                co2_average=round(co2_total / count, 2) if count else 0.0,
            ),
            purchases=[
                PurchaseItem(
                    id=str(r.id),
                    receipt_date=r.receipt_date,
                    store_name=r.store_name,
                    receipt_type=r.receipt_type,
                    co2=round(r.co2_total, 2),
                    product_count=len(r.items),
                )
                for r in receipts
            ],
        )
