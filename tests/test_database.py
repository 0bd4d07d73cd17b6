import datetime as dt
import threading

import pytest

from charging_receipt_pipeline.core.categorization import default_categories
from charging_receipt_pipeline.core.database import (SQLiteCategoryStore, InMemoryCategoryStore, next_sort_order,
                                                     CategoryStoreError, init_records_db,
                                                     insert_record, load_records)
from charging_receipt_pipeline.core.models import StationCategory, ChargingRecord


def test_sqlite_store_roundtrip(tmp_path):
    store = SQLiteCategoryStore(tmp_path / "c.sqlite")
    store.add_category(StationCategory(name="壳牌充电站", color="#007AFF", icon="bolt.fill", sort_order=7))
    store.add_category(StationCategory(name="特斯拉充电站", color="#FF9500", icon="bolt.circle.fill", sort_order=1))

    cats = store.list_categories()
    assert [c.name for c in cats] == ["特斯拉充电站", "壳牌充电站"]
    assert cats[1].sort_order == 7
    assert cats[1].icon == "bolt.fill"


def test_sqlite_store_rejects_duplicate_name(tmp_path):
    store = SQLiteCategoryStore(tmp_path / "c.sqlite")
    cat = StationCategory(name="国家电网", color="#AF52DE", icon="bolt.circle.fill")
    store.add_category(cat)
    with pytest.raises(CategoryStoreError):
        store.add_category(cat)


def test_seed_defaults_only_into_empty_table(tmp_path):
    store = SQLiteCategoryStore(tmp_path / "c.sqlite")
    assert store.seed_defaults(default_categories()) == 4
    assert store.seed_defaults(default_categories()) == 0
    assert len(store.list_categories()) == 4


def test_in_memory_store_rejects_duplicate_name():
    store = InMemoryCategoryStore(default_categories())
    with pytest.raises(CategoryStoreError):
        store.add_category(StationCategory(name="小鹏充电站", color="#007AFF", icon="bolt"))


def test_records_insert_and_load(tmp_path):
    db = tmp_path / "r.sqlite"
    init_records_db(db)
    later = ChargingRecord(location="国家电网", charging_time=dt.datetime(2025, 10, 26, 8, 0),
                           total_amount=20.0, source_sha1="b")
    earlier = ChargingRecord(location="特斯拉充电站", charging_time=dt.datetime(2025, 10, 25, 14, 30),
                             total_amount=57.3, energy_kwh=30.5, source_sha1="a")
    assert insert_record(db, later)
    assert insert_record(db, earlier)
    assert not insert_record(db, earlier)

    records = load_records(db)
    assert [r.location for r in records] == ["特斯拉充电站", "国家电网"]
    assert records[0] == earlier


@pytest.mark.parametrize("make_store", [
    lambda tmp_path: InMemoryCategoryStore(),
    lambda tmp_path: SQLiteCategoryStore(tmp_path / "c.sqlite"),
])
def test_create_category_assigns_sort_order(tmp_path, make_store):
    store = make_store(tmp_path)
    first = store.create_category("壳牌充电站", "#007AFF", "bolt.fill")
    assert first.sort_order == 1

    store.add_category(StationCategory(name="国家电网", color="#AF52DE", icon="bolt.circle.fill", sort_order=5))
    second = store.create_category("特斯拉充电站", "#FF9500", "bolt.circle.fill")
    assert second.sort_order == 6
    assert [c.name for c in store.list_categories()] == ["壳牌充电站", "国家电网", "特斯拉充电站"]

    with pytest.raises(CategoryStoreError):
        store.create_category("壳牌充电站", "#007AFF", "bolt.fill")


def test_concurrent_creates_get_distinct_sort_orders():
    store = InMemoryCategoryStore(default_categories())
    start = next_sort_order(store.list_categories())
    threads = [threading.Thread(target=store.create_category, args=(f"站{i}", "#007AFF", "bolt.fill"))
               for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    orders = [c.sort_order for c in store.list_categories()][-8:]
    assert sorted(orders) == list(range(start, start + 8))
