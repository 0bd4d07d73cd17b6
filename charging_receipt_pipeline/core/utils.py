"""
Utility functions and constants for receipt processing.
"""

import hashlib
import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, localcontext
from pathlib import Path
from typing import List, Optional

# File type constants
IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp"}
PDF_EXTS = {".pdf"}

# Decimal places per field family
CURRENCY_PLACES = 2
ENERGY_PLACES = 1
FINE_ENERGY_PLACES = 3

CURRENCY_GLYPHS = ("¥", "￥", "元")
FULL_WIDTH_PUNCT = {"：": ":", "，": ","}

NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")


def normalize_text(fragment: str) -> str:
    """Strip currency glyphs and fold full-width punctuation to ASCII."""
    if not fragment:
        return ""
    s = fragment
    for glyph in CURRENCY_GLYPHS:
        s = s.replace(glyph, "")
    for wide, narrow in FULL_WIDTH_PUNCT.items():
        s = s.replace(wide, narrow)
    return s


def extract_numbers(fragment: str) -> List[Decimal]:
    """Return every unsigned decimal number in the fragment, in order."""
    values = []
    for m in NUMBER_PATTERN.finditer(normalize_text(fragment)):
        try:
            values.append(Decimal(m.group(0)))
        except InvalidOperation:
            continue
    return values


def pick_number(fragment: str) -> Optional[Decimal]:
    """
    Pick "the" number of a line: the largest one.

    Amounts tend to be larger than the label codes or indexes printed next
    to them. A line carrying a large non-monetary number (order id, meter
    reading) will therefore yield that number instead of the amount.
    """
    values = extract_numbers(fragment)
    if not values:
        return None
    return max(values)


def quantize(value: Decimal, places: int) -> Decimal:
    """Round half-up to a fixed number of decimal places, whatever the magnitude."""
    value = Decimal(value)
    with localcontext() as ctx:
        # integer digits + places must fit in the context precision
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def sha1_file(path: Path) -> str:
    """Calculate SHA1 hash of file."""
    h = hashlib.sha1()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def money_fmt(v: Optional[float], symbol: str = "¥") -> str:
    """Format amount as currency."""
    return f"{symbol}{v:,.2f}" if v is not None else ""
