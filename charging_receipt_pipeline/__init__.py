"""
Charging Receipt Pipeline

Turns recognized text from EV charging receipts into editable draft
expense records, resolving the charging station along the way.
"""

__version__ = "1.0.0"
__author__ = "Charging Receipt Pipeline Contributors"

from charging_receipt_pipeline.core.models import ExtractionDraft, StationCategory
from charging_receipt_pipeline.core.processor import ReceiptIngestor

__all__ = ["ExtractionDraft", "StationCategory", "ReceiptIngestor"]
