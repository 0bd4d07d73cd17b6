"""
Database operations for station categories and charging records.

A category store is anything with `list_categories()` (sorted by sort order),
`add_category(category)` and `create_category(name, color, icon)`, the last
picking the next sort order inside the same write. Writers must be
serialized by the store; both writes raise CategoryStoreError when the
category cannot be saved.
"""

import sqlite3
import threading
import datetime as dt
from pathlib import Path
from typing import Iterable, List, Optional

from .models import StationCategory, ChargingRecord


class CategoryStoreError(Exception):
    """A station category could not be persisted."""


def next_sort_order(categories: Iterable[StationCategory]) -> int:
    """
    Sort order for a newly created category.

    An empty category list counts as max 0, so the first category created
    gets 1 rather than 0.
    """
    max_sort_order = max((c.sort_order for c in categories), default=0)
    return max_sort_order + 1


class InMemoryCategoryStore:
    """Category store kept in process memory."""

    def __init__(self, categories: Optional[Iterable[StationCategory]] = None):
        self._lock = threading.Lock()
        self._categories: List[StationCategory] = list(categories or [])

    def list_categories(self) -> List[StationCategory]:
        with self._lock:
            return sorted(self._categories, key=lambda c: c.sort_order)

    def add_category(self, category: StationCategory) -> StationCategory:
        with self._lock:
            if any(c.name == category.name for c in self._categories):
                raise CategoryStoreError(f"Station category already exists: {category.name}")
            self._categories.append(category)
        return category

    def create_category(self, name: str, color: str, icon: str) -> StationCategory:
        """Add a category placed after all existing ones."""
        with self._lock:
            if any(c.name == name for c in self._categories):
                raise CategoryStoreError(f"Station category already exists: {name}")
            category = StationCategory(name=name, color=color, icon=icon,
                                       sort_order=next_sort_order(self._categories))
            self._categories.append(category)
        return category


def init_categories_db(db_path: Path):
    """Initialize SQLite table for station categories."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS station_categories (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            color TEXT NOT NULL,
            icon TEXT NOT NULL,
            sort_order INTEGER NOT NULL DEFAULT 0,
            created_at TEXT
        )
        """)
        conn.commit()


class SQLiteCategoryStore:
    """Category store backed by a SQLite file."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        init_categories_db(db_path)

    def list_categories(self) -> List[StationCategory]:
        with sqlite3.connect(self.db_path.as_posix()) as conn:
            cur = conn.cursor()
            cur.execute("""
                SELECT name, color, icon, sort_order, created_at
                FROM station_categories
                ORDER BY sort_order, id
            """)
            return [
                StationCategory(
                    name=row[0], color=row[1], icon=row[2], sort_order=row[3],
                    created_at=dt.datetime.fromisoformat(row[4]) if row[4] else dt.datetime.now()
                )
                for row in cur.fetchall()
            ]

    def add_category(self, category: StationCategory) -> StationCategory:
        try:
            with sqlite3.connect(self.db_path.as_posix()) as conn:
                cur = conn.cursor()
                cur.execute("""
                    INSERT INTO station_categories (name, color, icon, sort_order, created_at)
                    VALUES (?, ?, ?, ?, ?)
                """, (category.name, category.color, category.icon,
                      category.sort_order, category.created_at.isoformat()))
                conn.commit()
        except sqlite3.Error as e:
            raise CategoryStoreError(f"Could not save station category '{category.name}': {e}") from e
        return category

    def create_category(self, name: str, color: str, icon: str) -> StationCategory:
        """Add a category placed after all existing ones, in one statement."""
        created_at = dt.datetime.now()
        try:
            with sqlite3.connect(self.db_path.as_posix()) as conn:
                cur = conn.cursor()
                cur.execute("""
                    INSERT INTO station_categories (name, color, icon, sort_order, created_at)
                    SELECT ?, ?, ?, COALESCE(MAX(sort_order), 0) + 1, ?
                    FROM station_categories
                """, (name, color, icon, created_at.isoformat()))
                cur.execute("SELECT sort_order FROM station_categories WHERE id = ?",
                            (cur.lastrowid,))
                sort_order = cur.fetchone()[0]
                conn.commit()
        except sqlite3.Error as e:
            raise CategoryStoreError(f"Could not save station category '{name}': {e}") from e
        return StationCategory(name=name, color=color, icon=icon,
                               sort_order=sort_order, created_at=created_at)

    def seed_defaults(self, categories: Iterable[StationCategory]) -> int:
        """Insert the given categories if the table is empty. Returns rows added."""
        with sqlite3.connect(self.db_path.as_posix()) as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM station_categories")
            if cur.fetchone()[0] > 0:
                return 0

            data = [(c.name, c.color, c.icon, c.sort_order, c.created_at.isoformat())
                    for c in categories]
            cur.executemany("""
                INSERT OR IGNORE INTO station_categories (name, color, icon, sort_order, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, data)
            conn.commit()
            return cur.rowcount if cur.rowcount >= 0 else len(data)


def init_records_db(db_path: Path):
    """Initialize SQLite table for confirmed charging records."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS charging_records (
            id INTEGER PRIMARY KEY,
            location TEXT,
            charging_time TEXT,
            amount REAL,
            energy_kwh REAL,
            service_fee REAL,
            total_amount REAL,
            parking_fee REAL,
            notes TEXT,
            station_type TEXT,
            record_type TEXT,
            points REAL,
            discount_amount REAL,
            extreme_energy_kwh REAL,
            source_sha1 TEXT UNIQUE
        )
        """)
        conn.commit()


RECORD_COLUMNS = ["location", "charging_time", "amount", "energy_kwh", "service_fee",
                  "total_amount", "parking_fee", "notes", "station_type", "record_type",
                  "points", "discount_amount", "extreme_energy_kwh", "source_sha1"]


def insert_record(db_path: Path, record: ChargingRecord) -> bool:
    """
    Save a charging record.

    Records imported from the same photo (same source_sha1) are stored once.

    Returns:
        True if a row was written, False if it was already present
    """
    values = record.to_dict()
    values["charging_time"] = record.charging_time.isoformat()
    placeholders = ",".join("?" * len(RECORD_COLUMNS))
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute(f"""
        INSERT OR IGNORE INTO charging_records ({",".join(RECORD_COLUMNS)})
        VALUES ({placeholders})
        """, [values[c] for c in RECORD_COLUMNS])
        conn.commit()
        return cur.rowcount == 1


def load_records(db_path: Path) -> List[ChargingRecord]:
    """Load all charging records, oldest first."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT {",".join(RECORD_COLUMNS)}
            FROM charging_records
            ORDER BY charging_time, id
        """)
        records = []
        for row in cur.fetchall():
            data = dict(zip(RECORD_COLUMNS, row))
            data["charging_time"] = dt.datetime.fromisoformat(data["charging_time"])
            records.append(ChargingRecord(**data))
        return records
