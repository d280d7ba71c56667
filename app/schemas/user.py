from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.user import User


class UserResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: EmailStr
    green_points: int = 0

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            green_points=user.green_points,
        )


class ProfileStats(BaseModel):
    receipt_count: int
    green_receipt_count: int
    co2_total: float
    co2_average: float


class ProfileResponse(BaseModel):
    user: UserResponse
    stats: ProfileStats


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=3, max_length=80)
    last_name: Optional[str] = Field(None, min_length=3, max_length=80)
