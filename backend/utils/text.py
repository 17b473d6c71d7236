# backend/utils/text.py
import unicodedata
from typing import Optional

# Unicode block of combining diacritical marks left behind by NFD decomposition
_COMBINING_FIRST = 0x0300
_COMBINING_LAST = 0x036F


def normalize_text(text: Optional[str]) -> str:
    """Lowercase and strip accents, so 'Café' and 'cafe' compare equal."""
    decomposed = unicodedata.normalize("NFD", (text or "").lower())
    return "".join(
        ch for ch in decomposed
        if not (_COMBINING_FIRST <= ord(ch) <= _COMBINING_LAST)
    )


def normalized_includes(text: Optional[str], search_term: Optional[str]) -> bool:
    return normalize_text(search_term) in normalize_text(text)
