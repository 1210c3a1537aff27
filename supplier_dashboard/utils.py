import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from . import settings

logger = logging.getLogger(__name__)


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def epoch() -> pd.Timestamp:
    """The Unix epoch expressed in the dashboard's local time."""
    return pd.Timestamp(0, tz="UTC").tz_convert(settings.TIMEZONE).tz_localize(None)


def to_local_timestamp(value: Any) -> pd.Timestamp:
    """
    Parses an order timestamp into a naive local-time Timestamp.

    Offset-aware strings (e.g. '2024-03-01T10:00:00Z') are converted to the
    configured timezone; naive strings are taken as already local. Missing or
    unparseable values become the epoch so they sort first.
    """
    if value is None or value == "":
        return epoch()
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        return epoch()
    if pd.isna(ts):
        return epoch()
    if ts.tzinfo is not None:
        ts = ts.tz_convert(settings.TIMEZONE).tz_localize(None)
    return ts


def start_of_day(day: date) -> pd.Timestamp:
    """00:00:00.000 local time on the given day."""
    return pd.Timestamp(day.year, day.month, day.day)


def end_of_day(day: date) -> pd.Timestamp:
    """23:59:59.999 local time on the given day."""
    return start_of_day(day) + pd.Timedelta(days=1) - pd.Timedelta(milliseconds=1)


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parses a YYYY-MM-DD command-line value; empty means 'no bound'."""
    if not value:
        return None
    return datetime.strptime(value, "%Y-%m-%d").date()


def load_json(file_path: Path) -> Optional[Any]:
    """
    A JSON loader with an encoding fallback, used for offline snapshots.
    It will attempt to read a file in the following order:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1, which can decode any byte sequence.
    Returns None when the file does not exist.
    """
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        logger.info(f"Snapshot not found at {file_path}, skipping.")
        return None
    except UnicodeDecodeError:
        logger.info(f"UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'.")
        text = file_path.read_text(encoding="latin-1")

    return json.loads(text)


def paginate(items: list, page: int, per_page: int) -> tuple[list, int]:
    """Returns the 1-based page slice and the total page count."""
    total_pages = -(-len(items) // per_page) if items else 0
    page = min(max(page, 1), max(total_pages, 1))
    start = (page - 1) * per_page
    return items[start : start + per_page], total_pages
