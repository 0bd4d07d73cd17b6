"""
Data models for charging receipt ingestion.
"""

import datetime as dt
import enum
from dataclasses import dataclass, asdict, field
from decimal import Decimal
from typing import Optional, Union


@dataclass
class ExtractionDraft:
    """Fields recognized on a charging receipt, each unset until a line provides it."""
    electricity_fee_amount: Optional[Decimal] = None
    service_fee_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    energy_kwh: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    points_amount: Optional[Decimal] = None
    extreme_energy_kwh: Optional[Decimal] = None
    notes: Optional[str] = None
    station_name: Optional[str] = None
    charging_time: Optional[dt.datetime] = None

    def is_empty(self) -> bool:
        return all(v is None for v in asdict(self).values())

    def to_dict(self):
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class StationCategory:
    """A charging network / brand the user tracks expenses against."""
    name: str
    color: str
    icon: str
    sort_order: int = 0
    created_at: dt.datetime = field(default_factory=dt.datetime.now)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Matched:
    category: StationCategory


@dataclass(frozen=True)
class Unmatched:
    candidate_name: str


@dataclass(frozen=True)
class NoStationDetected:
    pass


StationDecision = Union[Matched, Unmatched, NoStationDetected]


class WorkflowState(enum.Enum):
    """
    IDLE -> CLASSIFYING -> (DECIDING ->) RESOLVED | CANCELLED.
    ingest() returns at DECIDING or RESOLVED; the earlier states are only
    held while it runs.
    """
    IDLE = "idle"
    CLASSIFYING = "classifying"
    DECIDING = "deciding"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class ResolutionOutcome(enum.Enum):
    """The three answers a user can give for an unknown station name."""
    CREATE_STATION = "create"
    USE_EXISTING = "use-existing"
    CANCEL = "cancel"


@dataclass
class IngestionResult:
    """
    Outcome of one ingestion; pending while the station decision is open.
    `draft` becomes None once the ingestion is cancelled.
    """
    draft: Optional[ExtractionDraft]
    decision: StationDecision
    state: WorkflowState = WorkflowState.IDLE

    @property
    def pending(self) -> bool:
        return self.state is WorkflowState.DECIDING


@dataclass
class ResolutionResult:
    """
    Finalized ingestion after a station decision.

    `draft` is None only when the user cancelled. `warning` carries a
    recoverable problem (e.g. the new station could not be saved).
    """
    draft: Optional[ExtractionDraft]
    state: WorkflowState
    created_category: Optional[StationCategory] = None
    warning: Optional[str] = None


@dataclass
class ChargingRecord:
    """A confirmed charging expense."""
    location: str
    charging_time: dt.datetime
    amount: float = 0.0
    energy_kwh: float = 0.0
    service_fee: float = 0.0
    total_amount: float = 0.0
    parking_fee: float = 0.0
    notes: str = ""
    station_type: str = ""
    record_type: str = "充电"  # 充电 | 换电 | 维修 | 充值
    points: float = 0.0
    discount_amount: float = 0.0
    extreme_energy_kwh: float = 0.0
    source_sha1: Optional[str] = None

    def to_dict(self):
        """Convert to dictionary."""
        return asdict(self)
