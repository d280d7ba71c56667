from fastapi import APIRouter
from app.api.v1.endpoints import auth, profile, receipts, history, home, promotions

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(receipts.router, prefix="/receipts", tags=["receipts"])
api_router.include_router(history.router, prefix="/history", tags=["history"])
api_router.include_router(home.router, prefix="/home", tags=["home"])
api_router.include_router(promotions.router, prefix="/promotions", tags=["promotions"])
