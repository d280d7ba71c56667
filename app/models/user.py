from pydantic import EmailStr, Field

from app.models.base import MongoModel


class User(MongoModel):
    """User database document."""
    first_name: str
    last_name: str = ""
    email: EmailStr
    hashed_password: str
    green_points: int = Field(default=0, ge=0)
    is_deleted: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
