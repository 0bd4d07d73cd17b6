#!/usr/bin/env python3
"""
Main CLI entrypoint for the charging receipt pipeline.
"""

import argparse
import datetime as dt
import json
import os
import sys
from pathlib import Path

from charging_receipt_pipeline.core.categorization import default_categories
from charging_receipt_pipeline.core.database import SQLiteCategoryStore, init_records_db, load_records
from charging_receipt_pipeline.core.models import ResolutionOutcome
from charging_receipt_pipeline.core.ocr import DEFAULT_OCR_LANG
from charging_receipt_pipeline.core.processor import ReceiptIngestor
from charging_receipt_pipeline.core.statistics import monthly_statistics, location_statistics
from charging_receipt_pipeline.core.utils import sha1_file, money_fmt

OUTCOME_CHOICES = {
    "create": ResolutionOutcome.CREATE_STATION,
    "use-existing": ResolutionOutcome.USE_EXISTING,
    "cancel": ResolutionOutcome.CANCEL,
}


def _print_draft(draft):
    print(json.dumps(draft.to_dict(), ensure_ascii=False, indent=2, default=str))


def _ask_outcome(candidate: str) -> ResolutionOutcome:
    """Prompt for the three-way station decision."""
    print(f"[INFO] Station '{candidate}' is not in your station list.")
    print("  1) Create station")
    print("  2) Use an existing station")
    print("  3) Cancel")
    while True:
        answer = input("Choose [1/2/3]: ").strip()
        if answer == "1":
            return ResolutionOutcome.CREATE_STATION
        if answer == "2":
            return ResolutionOutcome.USE_EXISTING
        if answer == "3":
            return ResolutionOutcome.CANCEL
        print("[WARN] Please answer 1, 2 or 3")


def cmd_ingest(args, store) -> int:
    ingestor = ReceiptIngestor(store=store, records_db=Path(args.db) if args.save else None,
                               ocr_lang=args.ocr_lang, verbose=args.verbose)
    path = Path(args.file)
    if not path.exists():
        print(f"[ERROR] File not found: {path}")
        return 1

    if args.lines:
        lines = path.read_text(encoding="utf-8").splitlines()
        result = ingestor.ingest(lines)
    else:
        try:
            result = ingestor.ingest_file(path)
        except ValueError as e:
            print(f"[ERROR] {e}")
            return 1

    draft = result.draft
    if result.pending:
        candidate = result.decision.candidate_name
        if args.on_unmatched == "ask":
            outcome = _ask_outcome(candidate)
        else:
            outcome = OUTCOME_CHOICES[args.on_unmatched]
        resolution = ingestor.resolve_station(result, outcome)
        if resolution.warning:
            print(f"[WARN] {resolution.warning}; pick a station manually")
        if resolution.draft is None:
            print("[INFO] Import cancelled, nothing saved")
            return 0
        if resolution.created_category:
            print(f"[OK] Created station '{resolution.created_category.name}'")
        draft = resolution.draft

    _print_draft(draft)

    if args.save:
        ingestor.save_record(draft, source_sha1=sha1_file(path))
        print(f"[OK] Saved record to {args.db}")
    return 0


def cmd_categories(args, store) -> int:
    if args.seed:
        added = store.seed_defaults(default_categories())
        print(f"[OK] Seeded {added} default station(s)")
    categories = store.list_categories()
    if not categories:
        print("[INFO] No stations yet (use --seed to add the defaults)")
    for c in categories:
        print(f"  {c.sort_order:>3}  {c.name}  {c.color}  {c.icon}")
    return 0


def cmd_summary(args, store) -> int:
    if args.month:
        try:
            when = dt.datetime.strptime(args.month, "%Y-%m")
        except ValueError:
            print(f"[ERROR] Invalid month (expected YYYY-MM): {args.month}")
            return 1
    else:
        when = dt.datetime.now()

    init_records_db(Path(args.db))
    records = load_records(Path(args.db))
    stats = monthly_statistics(records, when)
    print(f"[INFO] {when:%Y-%m}: {stats.count} session(s), "
          f"{money_fmt(stats.total_expense)} spent, {stats.average_kwh:.1f} kWh on average")
    for loc in location_statistics(records, store.list_categories()):
        print(f"  {loc.location or '(no station)'}: {loc.count} x, {money_fmt(loc.total_amount)}")
    return 0


def main(argv=None):
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Turn EV charging receipts into draft expense records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recognize a receipt photo and ask about unknown stations
  charging-receipt ingest ./receipt.jpg --save

  # Ingest already-recognized text, one line per row
  charging-receipt ingest ./receipt.txt --lines --on-unmatched create

  # Seed and list the station list
  charging-receipt categories --seed

  # Monthly summary
  charging-receipt summary --month 2025-10
        """
    )
    parser.add_argument("--db", default=os.getenv("CHARGING_DB", "./charging.sqlite"),
                        help="SQLite file for stations and records (default: ./charging.sqlite, or CHARGING_DB env var)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show detailed parsing information for debugging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_ingest = sub.add_parser("ingest", help="Ingest one receipt")
    p_ingest.add_argument("file", help="Receipt image/PDF, or a text file with --lines")
    p_ingest.add_argument("--lines", action="store_true",
                          help="Treat FILE as UTF-8 text, one recognized line per row")
    p_ingest.add_argument("--on-unmatched", choices=["ask"] + list(OUTCOME_CHOICES), default="ask",
                          help="What to do with an unknown station name (default: ask)")
    p_ingest.add_argument("--save", action="store_true",
                          help="Save the finalized draft as a charging record")
    p_ingest.add_argument("--ocr-lang", default=os.getenv("OCR_LANG", DEFAULT_OCR_LANG),
                          help=f"Tesseract language(s) (default: {DEFAULT_OCR_LANG}, or OCR_LANG env var)")

    p_cat = sub.add_parser("categories", help="List known stations")
    p_cat.add_argument("--seed", action="store_true", help="Add the default stations if none exist")

    p_sum = sub.add_parser("summary", help="Monthly spending summary")
    p_sum.add_argument("--month", help="Month as YYYY-MM (default: current month)")

    args = parser.parse_args(argv)

    store = SQLiteCategoryStore(Path(args.db))
    if args.command == "ingest":
        return cmd_ingest(args, store)
    if args.command == "categories":
        return cmd_categories(args, store)
    return cmd_summary(args, store)


if __name__ == "__main__":
    sys.exit(main())
