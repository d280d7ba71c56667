"""
Line-item extraction from receipt OCR text.

Product lines look like ``LECHE GLORIA 1L   S/ 4.50``; weighted or counted
lines may start with a quantity and unit, e.g. ``0.850 KG PLATANO S/ 3.20``
or ``2 UN YOGURT S/ 7.80``.
"""

import re
from typing import List

from app.classification.models import RawExtractedLineItem

LINE_PATTERN = re.compile(r"^(.+?)\s+(?:S/|s/)\s*(\d+(?:[.,]\d+)?)", re.MULTILINE)
QUANTITY_PATTERN = re.compile(r"^(\d+(?:[.,]\d+)?)\s*(kg|g|ml|l|un|und|unid)\b\.?\s+(.+)$", re.IGNORECASE)

SKIP_WORDS = ("total", "subtotal", "igv", "vuelto")
MIN_NAME_LENGTH = 3
MAX_PRICE = 1000
DEFAULT_CONFIDENCE = 0.7

UNIT_ALIASES = {"und": "un", "unid": "un"}


def _number(text: str) -> float:
    return float(text.replace(",", "."))


def parse_line(name: str, price: float) -> RawExtractedLineItem:
    quantity, unit = 1.0, "un"
    match = QUANTITY_PATTERN.match(name)
    if match:
        quantity = _number(match.group(1))
        unit = match.group(2).lower()
        unit = UNIT_ALIASES.get(unit, unit)
        name = match.group(3).strip()
    return RawExtractedLineItem(
        name=name,
        unit_price=price,
        quantity=quantity,
        unit=unit,
        ocr_confidence=DEFAULT_CONFIDENCE,
    )


def parse_line_items(text: str) -> List[RawExtractedLineItem]:
    items = []
    for match in LINE_PATTERN.finditer(text or ""):
        name = match.group(1).strip()
        price = _number(match.group(2))

        lowered = name.lower()
        if len(name) < MIN_NAME_LENGTH or any(word in lowered for word in SKIP_WORDS):
            continue
        if not 0 < price < MAX_PRICE:
            continue

        item = parse_line(name, price)
        if item.quantity > 0 and len(item.name) >= MIN_NAME_LENGTH:
            items.append(item)
    return items
