import base64
from typing import Dict, List

import requests
from fastapi import HTTPException

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={key}"

PROMPT_RECEIPT_TEXT = (
    "Extract all visible text from this supermarket receipt. "
    "Return text only and preserve line breaks. Keep each product on its own "
    "line together with its quantity, unit and price (for example 'S/ 4.50')."
)


def _gemini_generate_content(parts: List[Dict], temperature: float = 0.0, max_output_tokens: int = 2048) -> str:
    if not settings.GEMINI_API_KEY:
        raise HTTPException(
            status_code=500,
            detail="GEMINI_API_KEY not configured on server"
        )

    url = GEMINI_URL.format(model=settings.GEMINI_MODEL, key=settings.GEMINI_API_KEY)
    payload = {
        "contents": [
            {
                "role": "user",
                "parts": parts
            }
        ],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens
        }
    }

    try:
        response = requests.post(url, json=payload, timeout=120)
        if response.status_code != 200:
            logger.error("Gemini returned %s: %s", response.status_code, response.text)
            raise HTTPException(
                status_code=500,
                detail=f"Gemini API request failed: {response.text}"
            )

        data = response.json()
        candidates = data.get("candidates", [])
        if not candidates:
            return ""

        content = candidates[0].get("content", {})
        parts_out = content.get("parts", [])
        return "".join(part.get("text", "") for part in parts_out if isinstance(part, dict))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Gemini request failed: %s", e)
        raise HTTPException(
            status_code=500,
            detail=f"Gemini API request failed: {str(e)}"
        )


def extract_receipt_text(image_bytes: bytes, mime_type: str) -> str:
    """OCR a receipt image (or PDF) into plain text."""
    parts = [
        {"text": PROMPT_RECEIPT_TEXT},
        {
            "inlineData": {
                "mimeType": mime_type,
                "data": base64.b64encode(image_bytes).decode("utf-8")
            }
        }
    ]
    text = _gemini_generate_content(parts)
    logger.info("Extracted %d characters of receipt text", len(text))
    return text
