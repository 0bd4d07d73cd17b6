"""
Receipt ingestion orchestration.
"""

import datetime as dt
from decimal import Decimal
from pathlib import Path
from typing import Optional, Sequence

from .categorization import match_station, station_type
from .database import InMemoryCategoryStore, init_records_db, insert_record
from .models import (ExtractionDraft, ChargingRecord, IngestionResult,
                     ResolutionOutcome, ResolutionResult, WorkflowState,
                     NoStationDetected)
from .ocr import recognize_lines, DEFAULT_OCR_LANG
from .parsers import classify_lines
from .resolution import StationResolver
from .utils import quantize, FINE_ENERGY_PLACES


def _as_float(value: Optional[Decimal], places: Optional[int] = None) -> float:
    if value is None:
        return 0.0
    return float(quantize(value, places)) if places is not None else float(value)


def draft_to_record(draft: ExtractionDraft,
                    charging_time: Optional[dt.datetime] = None,
                    source_sha1: Optional[str] = None) -> ChargingRecord:
    """
    Turn a finalized draft into a record, defaulting missing amounts to zero.
    A missing total is the electricity fee plus the service fee. Discount and
    extreme-energy kWh are kept to 0.001.
    """
    location = draft.station_name or ""
    electricity = _as_float(draft.electricity_fee_amount)
    service = _as_float(draft.service_fee_amount)
    total = (float(draft.total_amount) if draft.total_amount is not None
             else round(electricity + service, 2))

    return ChargingRecord(
        location=location,
        charging_time=charging_time or draft.charging_time or dt.datetime.now(),
        amount=electricity,
        energy_kwh=_as_float(draft.energy_kwh),
        service_fee=service,
        total_amount=total,
        notes=draft.notes or "",
        station_type=station_type(location),
        points=_as_float(draft.points_amount),
        discount_amount=_as_float(draft.discount_amount, FINE_ENERGY_PLACES),
        extreme_energy_kwh=_as_float(draft.extreme_energy_kwh, FINE_ENERGY_PLACES),
        source_sha1=source_sha1,
    )


class ReceiptIngestor:
    """Turns recognized receipt text into a draft charging record."""

    def __init__(self, store=None, records_db: Optional[Path] = None,
                 ocr_lang: str = DEFAULT_OCR_LANG, verbose: bool = False):
        """
        Initialize receipt ingestor.

        Args:
            store: Category store (defaults to an empty in-memory store)
            records_db: SQLite file for confirmed records (optional)
            ocr_lang: Tesseract language(s) used by ingest_file
            verbose: Whether to show verbose debugging output
        """
        self.store = store if store is not None else InMemoryCategoryStore()
        self.records_db = records_db
        self.ocr_lang = ocr_lang
        self.verbose = verbose
        self.resolver = StationResolver(self.store, verbose=verbose)

        if self.records_db is not None:
            init_records_db(self.records_db)

    def _enter(self, result: IngestionResult, state: WorkflowState):
        if self.verbose:
            print(f"  [DEBUG] State {result.state.value} -> {state.value}")
        result.state = state

    def ingest(self, lines: Sequence[str]) -> IngestionResult:
        """
        Classify recognized lines and match the station.

        Returns:
            IngestionResult; `pending` is True when the station name is unknown
            and resolve_station() must be called with the user's choice
        """
        result = IngestionResult(draft=ExtractionDraft(), decision=NoStationDetected())
        if not lines:
            if self.verbose:
                print(f"  [DEBUG] No recognized text, returning empty draft")
            self._enter(result, WorkflowState.RESOLVED)
            return result

        self._enter(result, WorkflowState.CLASSIFYING)
        result.draft = classify_lines(lines, verbose=self.verbose)
        result.decision = match_station(result.draft.station_name, self.store.list_categories())
        self._enter(result, self.resolver.settle(result.draft, result.decision))

        if self.verbose:
            print(f"  [DEBUG] Station decision: {result.decision} -> {result.state.value}")

        return result

    def resolve_station(self, result: IngestionResult,
                        outcome: ResolutionOutcome) -> ResolutionResult:
        """
        Resume a pending ingestion with the user's station choice.
        Cancelling also drops the draft held by `result`.
        """
        if not result.pending:
            raise ValueError(f"Ingestion is not waiting for a station decision (state: {result.state.value})")
        resolution = self.resolver.resolve(result.draft, result.decision, outcome)
        self._enter(result, resolution.state)
        result.draft = resolution.draft
        return resolution

    def ingest_file(self, path: Path) -> IngestionResult:
        """OCR a receipt photo or PDF and ingest its lines."""
        print(f"[INFO] Recognizing {path.name}")
        lines = recognize_lines(path, lang=self.ocr_lang)
        if self.verbose:
            print(f"  [DEBUG] {len(lines)} line(s) recognized")
            for i, line in enumerate(lines[:5], 1):
                print(f"    {i}: {line[:80]}")
        return self.ingest(lines)

    def save_record(self, draft: ExtractionDraft,
                    charging_time: Optional[dt.datetime] = None,
                    source_sha1: Optional[str] = None) -> ChargingRecord:
        """Persist a finalized draft as a charging record."""
        if self.records_db is None:
            raise ValueError("No records database configured")
        record = draft_to_record(draft, charging_time=charging_time, source_sha1=source_sha1)
        if not insert_record(self.records_db, record):
            print(f"[WARN] Receipt already imported ({source_sha1[:8] if source_sha1 else 'no hash'}), not saved again")
        return record
