import datetime as dt
from decimal import Decimal

from charging_receipt_pipeline.core import parsers
from charging_receipt_pipeline.core.parsers import (classify_lines, parse_energy,
                                                    parse_keyword_amount, parse_station_name,
                                                    parse_charging_time, TOTAL_KEYWORDS)

RECEIPT = [
    "尊敬的用户",
    "电费: ¥45.30",
    "服务费: ¥12.00",
    "充电量 30.5 kWh",
    "特斯拉超级充电站",
    "合计 ¥57.30",
]


def test_classify_tesla_receipt():
    draft = classify_lines(RECEIPT)
    assert draft.electricity_fee_amount == Decimal("45.30")
    assert draft.service_fee_amount == Decimal("12.00")
    assert draft.energy_kwh == Decimal("30.5")
    assert draft.total_amount == Decimal("57.30")
    assert draft.station_name == "特斯拉充电站"
    assert draft.discount_amount is None
    assert draft.charging_time is None


def test_first_matching_line_wins():
    draft = classify_lines(["电费 10.00", "电费 20.00", "合计 30", "实付 25"])
    assert draft.electricity_fee_amount == Decimal("10.00")
    assert draft.total_amount == Decimal("30.00")


def test_line_order_does_not_matter_across_fields():
    assert classify_lines(list(reversed(RECEIPT))) == classify_lines(RECEIPT)


def test_classifier_is_repeatable():
    assert classify_lines(RECEIPT) == classify_lines(RECEIPT)


def test_keyword_without_number_leaves_field_unset():
    draft = classify_lines(["电费", "服务费: 免费", "电费 8.8"])
    assert draft.electricity_fee_amount == Decimal("8.80")
    assert draft.service_fee_amount is None


def test_empty_input_gives_empty_draft():
    assert classify_lines([]).is_empty()
    assert classify_lines(["", "   "]).is_empty()


def test_one_line_can_fill_several_fields():
    draft = classify_lines(["电费 45.30 服务费 12.00"])
    # both fields take the largest number on the line
    assert draft.electricity_fee_amount == Decimal("45.30")
    assert draft.service_fee_amount == Decimal("45.30")


def test_parse_energy_units():
    assert parse_energy("充电量 30.54 kWh") == Decimal("30.5")
    assert parse_energy("本次充电 12度") == Decimal("12.0")
    assert parse_energy("42.06KWH") == Decimal("42.1")
    assert parse_energy("单价 1.2元/度") is None
    assert parse_energy("服务费 12.00") is None


def test_parse_keyword_amount():
    assert parse_keyword_amount("实付金额：￥88.5", TOTAL_KEYWORDS) == Decimal("88.50")
    assert parse_keyword_amount("优惠 5.00", TOTAL_KEYWORDS) is None


def test_parse_station_name_uses_brand_table():
    assert parse_station_name("Tesla Supercharger 上海") == "特斯拉充电站"
    assert parse_station_name("蔚来换电站 NIO Power") == "蔚来换电站"
    assert parse_station_name("国家电网 e充电") == "国家电网"
    assert parse_station_name("壳牌充电站") is None


def test_parse_charging_time():
    assert parse_charging_time("充电时间 2025-10-25 14:30") == dt.datetime(2025, 10, 25, 14, 30)
    assert parse_charging_time("2025年10月5日") == dt.datetime(2025, 10, 5)
    assert parse_charging_time("2025-13-40") is None


def test_charging_time_is_extracted():
    draft = classify_lines(RECEIPT + ["开始时间 2025/10/25 09:05:11"])
    assert draft.charging_time == dt.datetime(2025, 10, 25, 9, 5, 11)


def test_long_order_number_keeps_cents():
    draft = classify_lines(["电费 订单号 123456789012345678901234567 45.30"])
    assert draft.electricity_fee_amount == Decimal("123456789012345678901234567.00")


def test_failing_line_is_skipped(monkeypatch, capsys):
    def energy(line):
        if "损坏" in line:
            raise ValueError("unreadable")
        return parse_energy(line)

    rules = (("energy_kwh", energy),) + tuple(r for r in parsers.FIELD_RULES if r[0] != "energy_kwh")
    monkeypatch.setattr(parsers, "FIELD_RULES", rules)

    draft = classify_lines(["损坏 电费 45.30", "充电量 30.5 kWh", "服务费 12.00"])
    assert draft.energy_kwh == Decimal("30.5")
    assert draft.electricity_fee_amount == Decimal("45.30")
    assert draft.service_fee_amount == Decimal("12.00")
    assert "[WARN] Skipping line 1 for energy_kwh" in capsys.readouterr().out
