from fastapi import HTTPException

from app.db.session import get_database
from app.models.receipt import ReceiptType
from app.repositories.receipt_repo import ReceiptRepository
from app.repositories.user_repo import UserRepository
from app.schemas.user import ProfileResponse, ProfileStats, ProfileUpdate, UserResponse


class ProfileService:
    @staticmethod
    async def get_profile(user_id: str) -> ProfileResponse:
        """User data plus receipt statistics"""
        db = await get_database()
        user = await UserRepository(db).get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        receipts = await ReceiptRepository(db).list_receipts(user_id)
        co2_total = sum(r.co2_total for r in receipts)
        count = len(receipts)

        return ProfileResponse(
            user=UserResponse.from_user(user),
            stats=ProfileStats(
                receipt_count=count,
                green_receipt_count=sum(1 for r in receipts if r.receipt_type == ReceiptType.GREEN),
                co2_total=round(co2_total, 2),
                co2_average=round(co2_total / count, 2) if count else 0.0,
            ),
        )

    @staticmethod
    async def update_profile(user_id: str, profile_in: ProfileUpdate) -> UserResponse:
        update_data = profile_in.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields to update")

        db = await get_database()
        user = await UserRepository(db).update_user(user_id, update_data)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse.from_user(user)
