import math
from enum import Enum

import pandas as pd

from . import settings


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMESTRIAL = "semestrial"
    YEARLY = "yearly"


WEEK_MODES = ("month", "iso")


def bucket_key(ts: pd.Timestamp, granularity: Granularity, week_mode: str = None) -> str:
    """
    Maps a local timestamp to a sortable bucket key:
    YYYY-MM-DD, YYYY-Wnn, YYYY-MM, YYYY-Qn, YYYY-Sn or YYYY.

    Weekly keys use ceil(day_of_month / 7) by default, so every month has
    weeks W01..W05 and they do not line up with calendar weeks. Pass
    week_mode="iso" for ISO weeks, keyed by ISO year.
    """
    granularity = Granularity(granularity)
    week_mode = week_mode or settings.WEEK_MODE

    if granularity is Granularity.DAILY:
        return f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d}"
    if granularity is Granularity.WEEKLY:
        if week_mode == "iso":
            iso_year, iso_week, _ = ts.isocalendar()
            return f"{iso_year:04d}-W{iso_week:02d}"
        if week_mode != "month":
            raise ValueError(f"Unknown week mode: {week_mode!r}")
        return f"{ts.year:04d}-W{math.ceil(ts.day / 7):02d}"
    if granularity is Granularity.MONTHLY:
        return f"{ts.year:04d}-{ts.month:02d}"
    if granularity is Granularity.QUARTERLY:
        return f"{ts.year:04d}-Q{quarter_of(ts)}"
    if granularity is Granularity.SEMESTRIAL:
        return f"{ts.year:04d}-S{1 if ts.month <= 6 else 2}"
    return f"{ts.year:04d}"


def quarter_of(ts: pd.Timestamp) -> int:
    return (ts.month - 1) // 3 + 1


def quarter_label(ts: pd.Timestamp) -> str:
    """'Q1'..'Q4', without the year."""
    return settings.QUARTERS[quarter_of(ts) - 1]
