import datetime as dt

import pytest

from charging_receipt_pipeline.core.models import ChargingRecord, StationCategory
from charging_receipt_pipeline.core.statistics import (monthly_expense, monthly_kwh, monthly_statistics,
                                                       records_by_day, location_statistics, trend_data,
                                                       card_balance, UNKNOWN_LOCATION_COLOR)


def _rec(location, when, total, kwh=0.0, record_type="充电", extreme=0.0):
    return ChargingRecord(location=location, charging_time=when, total_amount=total,
                          energy_kwh=kwh, record_type=record_type, extreme_energy_kwh=extreme)


RECORDS = [
    _rec("特斯拉充电站", dt.datetime(2025, 10, 25, 14, 30), 57.3, 30.5),
    _rec("特斯拉充电站", dt.datetime(2025, 10, 25, 20, 0), 20.0, 10.0),
    _rec("国家电网", dt.datetime(2025, 10, 3, 9, 0), 30.0, 20.5),
    _rec("国家电网", dt.datetime(2025, 9, 30, 23, 59), 99.0, 50.0),
]

OCT = dt.datetime(2025, 10, 15)


def test_monthly_totals():
    assert monthly_expense(RECORDS, OCT) == pytest.approx(107.3)
    assert monthly_kwh(RECORDS, OCT) == pytest.approx(61.0)


def test_monthly_statistics():
    stats = monthly_statistics(RECORDS, OCT)
    assert stats.count == 3
    assert stats.average_kwh == pytest.approx(61.0 / 3)
    assert monthly_statistics([], OCT).average_kwh == 0.0


def test_records_by_day_newest_first():
    days = records_by_day(RECORDS, OCT)
    assert [d.day for d in days] == [dt.date(2025, 10, 25), dt.date(2025, 10, 3)]
    assert days[0].total_amount == pytest.approx(77.3)
    assert days[0].records[0].charging_time.hour == 20


def test_location_statistics():
    cats = [StationCategory(name="特斯拉充电站", color="#FF9500", icon="bolt.circle.fill")]
    stats = location_statistics(RECORDS, cats)
    assert [s.location for s in stats] == ["国家电网", "特斯拉充电站"]
    assert stats[0].count == 2
    assert stats[0].color == UNKNOWN_LOCATION_COLOR
    assert stats[1].color == "#FF9500"


def test_trend_data():
    now = dt.datetime(2025, 10, 26, 12, 0)
    week = trend_data(RECORDS, "week", now)
    assert len(week) == 7
    assert week[-2].amount == pytest.approx(77.3)

    year = trend_data(RECORDS, "year", now)
    assert [p.label for p in year][-2:] == ["9月", "10月"]
    assert year[-1].amount == pytest.approx(107.3)
    assert year[-2].amount == pytest.approx(99.0)

    assert len(trend_data(RECORDS, "month", now)) == 4
    with pytest.raises(ValueError):
        trend_data(RECORDS, "decade", now)


def test_card_balance():
    records = [
        _rec("", dt.datetime(2025, 10, 1), 100.0, kwh=200.0, record_type="充值"),
        _rec("蔚来换电站", dt.datetime(2025, 10, 2), 0.0, extreme=35.5),
    ]
    assert card_balance(records) == pytest.approx(164.5)
