"""
Parsers for extracting charging-session fields from recognized receipt lines.

OCR line order does not follow the printed layout reliably, so every rule is
keyword driven and runs on every line. A field keeps the first value found.
"""

import re
import datetime as dt
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from .categorization import match_brand
from .models import ExtractionDraft
from .utils import (normalize_text, pick_number, quantize,
                    CURRENCY_PLACES, ENERGY_PLACES)

ENERGY_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:kwh|度)", re.IGNORECASE)

ELECTRICITY_FEE_KEYWORDS = ("电费", "充电费", "电量费", "电费金额")
SERVICE_FEE_KEYWORDS = ("服务费",)
TOTAL_KEYWORDS = ("总金额", "实付", "合计", "应付")

DATETIME_PATTERNS = [
    r"(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?)?",   # 2025-10-25 14:30[:05]
    r"(\d{4})年(\d{1,2})月(\d{1,2})日(?:\s*(\d{1,2}):(\d{2})(?::(\d{2}))?)?",         # 2025年10月25日 14:30
]


def parse_energy(line: str) -> Optional[Decimal]:
    """Number directly followed by a kWh / 度 unit, rounded to 0.1 kWh."""
    m = ENERGY_PATTERN.search(normalize_text(line))
    if not m:
        return None
    return quantize(Decimal(m.group(1)), ENERGY_PLACES)


def parse_keyword_amount(line: str, keywords: Sequence[str]) -> Optional[Decimal]:
    """Largest number on a line containing any keyword, rounded to cents."""
    if not any(k in line for k in keywords):
        return None
    value = pick_number(line)
    if value is None:
        return None
    return quantize(value, CURRENCY_PLACES)


def parse_station_name(line: str) -> Optional[str]:
    """Canonical station name of the first brand mentioned on the line."""
    rule = match_brand(line)
    return rule.canonical_name if rule else None


def parse_charging_time(line: str) -> Optional[dt.datetime]:
    """First calendar date (optionally with time of day) on the line."""
    text = normalize_text(line)
    for pat in DATETIME_PATTERNS:
        for m in re.finditer(pat, text):
            y, mo, d, hh, mm, ss = m.groups()
            try:
                return dt.datetime(int(y), int(mo), int(d),
                                   int(hh or 0), int(mm or 0), int(ss or 0))
            except ValueError:
                continue
    return None


# (field, extractor) in the order they are tried on each line
FIELD_RULES: Tuple = (
    ("energy_kwh", parse_energy),
    ("electricity_fee_amount", lambda ln: parse_keyword_amount(ln, ELECTRICITY_FEE_KEYWORDS)),
    ("service_fee_amount", lambda ln: parse_keyword_amount(ln, SERVICE_FEE_KEYWORDS)),
    ("total_amount", lambda ln: parse_keyword_amount(ln, TOTAL_KEYWORDS)),
    ("station_name", parse_station_name),
    ("charging_time", parse_charging_time),
)


def classify_lines(lines: Sequence[str], verbose: bool = False) -> ExtractionDraft:
    """
    Build a draft from recognized text lines.

    Args:
        lines: Recognized lines, top to bottom
        verbose: Print which line populated which field

    Returns:
        ExtractionDraft with every field that some line provided
    """
    draft = ExtractionDraft()

    for idx, raw in enumerate(lines or []):
        line = (raw or "").strip()
        if not line:
            continue

        for field_name, extractor in FIELD_RULES:
            if getattr(draft, field_name) is not None:
                continue
            try:
                value = extractor(line)
            except Exception as e:
                print(f"[WARN] Skipping line {idx + 1} for {field_name}: {e}")
                continue
            if value is None:
                continue
            setattr(draft, field_name, value)
            if verbose:
                print(f"  [DEBUG] {field_name} = {value} (line {idx + 1}: '{line[:60]}')")

    return draft
