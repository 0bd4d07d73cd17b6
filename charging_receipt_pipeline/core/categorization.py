"""
Brand table and station matching.

The brand table maps alias spellings seen on receipts to a canonical station
name plus display style. It is evaluated top to bottom; the first rule with
an alias contained in the text wins.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .models import StationCategory, StationDecision, Matched, Unmatched, NoStationDetected


@dataclass(frozen=True)
class BrandRule:
    aliases: Tuple[str, ...]
    canonical_name: str
    color: str
    icon: str
    station_type: str


BRAND_RULES: List[BrandRule] = [
    BrandRule(("特斯拉", "Tesla", "TESLA", "tesla"), "特斯拉充电站", "#FF9500", "bolt.circle.fill", "特斯拉"),
    BrandRule(("小鹏", "XPeng", "XPENG", "Xpeng"), "小鹏充电站", "#007AFF", "bolt.circle.fill", "小鹏"),
    BrandRule(("蔚来", "NIO", "Nio"), "蔚来换电站", "#34C759", "bolt.circle.fill", "蔚来"),
    BrandRule(("国家电网", "国网电动", "State Grid", "STATE GRID"), "国家电网", "#AF52DE", "bolt.circle.fill", "国家电网"),
]

FALLBACK_COLOR = "#007AFF"
FALLBACK_ICON = "bolt.fill"
FALLBACK_STATION_TYPE = "国家电网"


def alias_in_text(alias: str, text: str) -> bool:
    """
    Substring test for CJK aliases; Latin aliases must stand as a whole word
    so that e.g. NIO is not found inside UNIONPAY.
    """
    if not alias.isascii():
        return alias in text
    return re.search(rf"(?<![A-Za-z]){re.escape(alias)}(?![A-Za-z])", text) is not None


def match_brand(text: str, rules: Sequence[BrandRule] = BRAND_RULES) -> Optional[BrandRule]:
    """Return the first brand rule with an alias contained in `text`."""
    if not text:
        return None
    for rule in rules:
        for alias in rule.aliases:
            if alias_in_text(alias, text):
                return rule
    return None


def station_style(name: str) -> Tuple[str, str]:
    """Color/icon pair for a station name, falling back to a plain blue bolt."""
    rule = match_brand(name)
    if rule is None:
        return (FALLBACK_COLOR, FALLBACK_ICON)
    return (rule.color, rule.icon)


def station_type(location: str) -> str:
    """Short brand label stored on a saved record."""
    rule = match_brand(location)
    return rule.station_type if rule else FALLBACK_STATION_TYPE


def default_categories() -> List[StationCategory]:
    """Categories a fresh install starts with, one per known brand."""
    return [
        StationCategory(name=rule.canonical_name, color=rule.color,
                        icon=rule.icon, sort_order=i)
        for i, rule in enumerate(BRAND_RULES)
    ]


def names_overlap(a: str, b: str) -> bool:
    """Containment match: equal, or either string contains the other."""
    return a == b or b in a or a in b


def match_station(candidate: Optional[str],
                  categories: Sequence[StationCategory]) -> StationDecision:
    """
    Match an extracted station name against the known categories.

    Args:
        candidate: Station name from the draft (may be empty or None)
        categories: Known categories; ties go to the lowest sort order

    Returns:
        Matched, Unmatched or NoStationDetected
    """
    name = (candidate or "").strip()
    if not name:
        return NoStationDetected()

    # sorted() is stable, so equal sort orders keep the caller's order
    for category in sorted(categories, key=lambda c: c.sort_order):
        if category.name and names_overlap(name, category.name):
            return Matched(category)

    return Unmatched(name)
