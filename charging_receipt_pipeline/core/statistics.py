"""
Expense summaries over confirmed charging records.
"""

import calendar
import datetime as dt
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .models import ChargingRecord, StationCategory

UNKNOWN_LOCATION_COLOR = "#8E8E93"


@dataclass
class MonthlyStatistics:
    total_expense: float
    count: int
    average_kwh: float


@dataclass
class LocationStatistics:
    location: str
    count: int
    total_amount: float
    color: str


@dataclass
class DaySummary:
    day: dt.date
    total_amount: float
    records: List[ChargingRecord]


@dataclass
class TrendPoint:
    start: dt.datetime
    label: str
    amount: float


def month_bounds(when: dt.datetime):
    """[start, end) of the calendar month containing `when`."""
    start = dt.datetime(when.year, when.month, 1)
    days = calendar.monthrange(when.year, when.month)[1]
    return start, start + dt.timedelta(days=days)


def records_in_month(records: Sequence[ChargingRecord], when: dt.datetime) -> List[ChargingRecord]:
    start, end = month_bounds(when)
    return [r for r in records if start <= r.charging_time < end]


def monthly_expense(records: Sequence[ChargingRecord], when: Optional[dt.datetime] = None) -> float:
    return sum(r.total_amount for r in records_in_month(records, when or dt.datetime.now()))


def monthly_kwh(records: Sequence[ChargingRecord], when: Optional[dt.datetime] = None) -> float:
    return sum(r.energy_kwh for r in records_in_month(records, when or dt.datetime.now()))


def monthly_statistics(records: Sequence[ChargingRecord], when: dt.datetime) -> MonthlyStatistics:
    """Total spend, session count and average kWh per session for one month."""
    month = records_in_month(records, when)
    count = len(month)
    total_kwh = sum(r.energy_kwh for r in month)
    return MonthlyStatistics(
        total_expense=sum(r.total_amount for r in month),
        count=count,
        average_kwh=total_kwh / count if count else 0.0,
    )


def records_by_day(records: Sequence[ChargingRecord], when: dt.datetime) -> List[DaySummary]:
    """Group one month's records per day, newest day first, newest record first."""
    grouped: Dict[dt.date, List[ChargingRecord]] = defaultdict(list)
    for r in records_in_month(records, when):
        grouped[r.charging_time.date()].append(r)

    return [
        DaySummary(
            day=day,
            total_amount=sum(r.total_amount for r in day_records),
            records=sorted(day_records, key=lambda r: r.charging_time, reverse=True),
        )
        for day, day_records in sorted(grouped.items(), reverse=True)
    ]


def location_statistics(records: Sequence[ChargingRecord],
                        categories: Sequence[StationCategory]) -> List[LocationStatistics]:
    """Per-location count and spend, highest spend first."""
    colors = {c.name: c.color for c in categories}
    counts: Dict[str, int] = defaultdict(int)
    totals: Dict[str, float] = defaultdict(float)
    for r in records:
        counts[r.location] += 1
        totals[r.location] += r.total_amount

    stats = [
        LocationStatistics(location=loc, count=counts[loc], total_amount=totals[loc],
                           color=colors.get(loc, UNKNOWN_LOCATION_COLOR))
        for loc in counts
    ]
    stats.sort(key=lambda s: s.total_amount, reverse=True)
    return stats


def _sum_between(records, start, end) -> float:
    return sum(r.total_amount for r in records if start <= r.charging_time < end)


def _add_months(when: dt.datetime, months: int) -> dt.datetime:
    idx = when.year * 12 + (when.month - 1) + months
    return dt.datetime(idx // 12, idx % 12 + 1, 1)


def trend_data(records: Sequence[ChargingRecord], time_range: str,
               now: Optional[dt.datetime] = None) -> List[TrendPoint]:
    """
    Spend over time, oldest point first.

    Args:
        time_range: "week" (last 7 days), "month" (last 4 weeks) or "year" (last 12 months)
    """
    now = now or dt.datetime.now()
    today = dt.datetime(now.year, now.month, now.day)
    points = []

    if time_range == "week":
        for i in reversed(range(7)):
            start = today - dt.timedelta(days=i)
            end = start + dt.timedelta(days=1)
            points.append(TrendPoint(start, start.strftime("%m-%d"), _sum_between(records, start, end)))
    elif time_range == "month":
        for i in reversed(range(4)):
            start = today - dt.timedelta(weeks=i + 1) + dt.timedelta(days=1)
            end = start + dt.timedelta(days=7)
            points.append(TrendPoint(start, f"第{4 - i}周", _sum_between(records, start, end)))
    elif time_range == "year":
        for i in reversed(range(12)):
            start = _add_months(now, -i)
            end = _add_months(start, 1)
            points.append(TrendPoint(start, f"{start.month}月", _sum_between(records, start, end)))
    else:
        raise ValueError(f"Unknown time range: {time_range}")

    return points


def card_balance(records: Sequence[ChargingRecord]) -> float:
    """kWh credited by 充值 records minus extreme-energy kWh used by 充电 records."""
    recharged = sum(r.energy_kwh for r in records if r.record_type == "充值")
    used = sum(r.extreme_energy_kwh for r in records if r.record_type == "充电")
    return recharged - used
