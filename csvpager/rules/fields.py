# csvpager/rules/fields.py
from __future__ import annotations

import re
import unicodedata

# ────────────────── service regex ──────────────────
_ZW_RE = re.compile(r"[\u200B-\u200D\uFEFF]")   # zero-width
_CTRL_RE = re.compile(r"[\x00-\x1F\x7F]")       # control chars

_QUOTE_PAIRS = {('"', '"'), ("'", "'")}


# ────────────────── primitives (one field in, one field out) ──────────────────
def strip_whitespace(value: str) -> str:
    """Trim whitespace on both ends (\\r included)."""
    return value.strip()


def sanitize_invisible(value: str) -> str:
    """Drop zero-width and control characters, normalize to NFC."""
    s = unicodedata.normalize("NFC", value)
    s = _ZW_RE.sub("", s)
    s = _CTRL_RE.sub("", s)
    return s


def to_lower(value: str) -> str:
    return value.lower()


def strip_quotes(value: str) -> str:
    """Remove one symmetric pair of outer quotes: "x" -> x, 'x' -> x."""
    if len(value) >= 2 and (value[0], value[-1]) in _QUOTE_PAIRS:
        return value[1:-1]
    return value


def clean_field(value: str) -> str:
    """
    Field clean-up used when trimming is requested:
      "\\"Alex \\"\\r" -> "Alex"
    whitespace, then one level of wrapping quotes, then whitespace again.
    """
    return strip_whitespace(strip_quotes(strip_whitespace(value)))
