from pydantic import BaseModel, EmailStr, Field

from app.schemas.user import UserResponse


class UserSignup(BaseModel):
    """Schema for user signup"""
    first_name: str = Field(..., min_length=3, max_length=80)
    last_name: str = Field(default="", max_length=80)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)


class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
