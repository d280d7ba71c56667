"""Retailer detection from OCR text."""

import re
import unicodedata
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# Retailer name or alias -> vector collection id.
RETAILER_COLLECTIONS: Mapping[str, str] = MappingProxyType({
    "wong": "wong",
    "vivanda": "vivanda",
    "tottus": "tottus",
    "plazavea": "plazavea",
    "plaza vea": "plazavea",
    "metro": "metro",
    "flora_y_fauna": "flora_y_fauna",
    "flora y fauna": "flora_y_fauna",
})

# Patterns run against lowercased, accent-free text. Retailers are tried in
# this order and the first one with a matching pattern wins; the loose
# "any character between letters" patterns come last in each list.
RETAILER_PATTERNS: Sequence[Tuple[str, Sequence[re.Pattern]]] = (
    ("wong", (
        re.compile(r"\bwong\b"),
        re.compile(r"\bw0ng\b"),
        re.compile(r"\bw.?[o0].?n.?g\b"),
    )),
    ("vivanda", (
        re.compile(r"\bvivanda\b"),
        re.compile(r"\bv1vanda\b"),
        re.compile(r"\bv.?[i1l].?v.?a.?n.?d.?a\b"),
    )),
    ("tottus", (
        re.compile(r"\btottus\b"),
        re.compile(r"\bt0ttus\b"),
        re.compile(r"\bt.?[o0].?t.?t.?u.?s\b"),
    )),
    ("plazavea", (
        re.compile(r"\bplaza\s*vea\b"),
        re.compile(r"\bp\.?\s*vea\b"),
        re.compile(r"\bp.?l.?a.?z.?a.?.?v.?e.?a\b"),
    )),
    ("metro", (
        re.compile(r"\bmetro\b"),
        re.compile(r"\bmetr0\b"),
        re.compile(r"\bm.?e.?t.?r.?[o0]\b"),
    )),
    ("flora_y_fauna", (
        re.compile(r"\bflora\s*y\s*fauna\b"),
        re.compile(r"\bflora\s*&\s*fauna\b"),
        re.compile(r"\bflora.?fauna\b"),
        re.compile(r"\bf.?l.?[o0].?r.?a.?.?f.?a.?u.?n.?a\b"),
    )),
)


def normalize_text(text: str) -> str:
    """Lowercase and strip diacritics."""
    decomposed = unicodedata.normalize("NFD", (text or "").lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


class SupermarketDetector:
    def __init__(self, default_collection: Optional[str] = None,
                 patterns: Sequence[Tuple[str, Sequence[re.Pattern]]] = RETAILER_PATTERNS,
                 collections: Mapping[str, str] = RETAILER_COLLECTIONS):
        self.default_collection = default_collection or settings.DEFAULT_COLLECTION
        self.patterns = patterns
        self.collections = collections

    def detect(self, ocr_text: str) -> str:
        """Return the collection id of the retailer named in `ocr_text`."""
        normalized = normalize_text(ocr_text)

        for retailer, patterns in self.patterns:
            for pattern in patterns:
                if pattern.search(normalized):
                    collection = self.collections.get(retailer, self.default_collection)
                    logger.info("Detected retailer %s (collection %s) via /%s/", retailer, collection, pattern.pattern)
                    return collection

        logger.warning("No retailer detected, using default collection %s", self.default_collection)
        return self.default_collection

    def normalize_name(self, name: str) -> str:
        """Map a known retailer name or alias to its collection id."""
        key = (name or "").lower().strip()
        return self.collections.get(key, self.default_collection)
