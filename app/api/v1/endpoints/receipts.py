from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.core.auth import get_current_user
from app.core.config import settings
from app.models.user import User
from app.schemas.receipt import ProcessReceiptResponse, ReceiptDetailResponse
from app.services.receipt_service import ReceiptService

router = APIRouter()


@router.post("/upload", response_model=ProcessReceiptResponse, status_code=201)
async def upload_receipt(
    receipt: UploadFile = File(...),
    generate_suggestions: bool = False,
    current_user: User = Depends(get_current_user)
):
    """Upload a receipt image and get its carbon footprint analysis"""
    content_type = receipt.content_type or "image/jpeg"
    if content_type not in settings.ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type {content_type}. Allowed: {', '.join(settings.ALLOWED_IMAGE_TYPES)}"
        )

    image_bytes = await receipt.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(image_bytes) > settings.MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail="File too large")

    return await ReceiptService.process_receipt(
        str(current_user.id),
        image_bytes,
        receipt.filename or "receipt",
        content_type,
        generate_suggestions=generate_suggestions
    )


@router.get("/{receipt_id}", response_model=ReceiptDetailResponse)
async def get_receipt(
    receipt_id: str,
    current_user: User = Depends(get_current_user)
):
    """Get a processed receipt with its products and recommendations"""
    return await ReceiptService.get_receipt_detail(receipt_id, str(current_user.id))
