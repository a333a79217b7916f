"""
Utility modules for the triage engine.
"""

from .formatting import format_currency, format_number, format_percent, format_score, water_label
from .config import Config
from .storage import JsonBlobStore, storage_key_for

__all__ = [
    "format_currency",
    "format_number",
    "format_percent",
    "format_score",
    "water_label",
    "Config",
    "JsonBlobStore",
    "storage_key_for",
]
