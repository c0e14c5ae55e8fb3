"""
Cell value normalizers for spreadsheet uploads.

Every function here is pure and tolerant: unrecognized input yields None (or,
where noted, is passed through) instead of raising, so that one odd cell
never aborts a whole upload. Validation happens afterwards.
"""

import datetime
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

import dateutil.parser
import pandas as pd

MMDDYYYY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
YYYYMD_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
MONTH_YEAR_RE = re.compile(r"^(\d{1,2})/(\d{4})$")
YEAR_RE = re.compile(r"(?<!\d)\d{4}(?!\d)")

# Day zero of the 1900 date system; serial 60 is the phantom 1900-02-29
EXCEL_EPOCH = datetime.date(1899, 12, 30)
EXCEL_PHANTOM_LEAP_SERIAL = 60

CENT = Decimal("0.01")


def _to_yyyy_mm_dd(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def _is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if value is pd.NaT:
        return True
    return False


def excel_serial_to_iso(serial) -> Optional[str]:
    """Decode a spreadsheet day serial (1900 date system) to YYYY-MM-DD."""
    try:
        serial = float(serial)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(serial) or serial < 1:
        return None
    days = int(serial)
    if days == EXCEL_PHANTOM_LEAP_SERIAL:
        # Lotus compatibility: spreadsheets believe 1900 was a leap year
        return "1900-02-29"
    if days < EXCEL_PHANTOM_LEAP_SERIAL:
        days += 1
    try:
        decoded = EXCEL_EPOCH + datetime.timedelta(days=days)
    except OverflowError:
        return None
    return _to_yyyy_mm_dd(decoded.year, decoded.month, decoded.day)


def normalize_date_only(raw) -> Optional[str]:
    """
    Canonicalize a date cell to a YYYY-MM-DD string.

    Strings that cannot be understood are returned trimmed but otherwise
    unchanged, so that the commit step can still reject them.
    """
    if _is_missing(raw):
        return None

    if isinstance(raw, str):
        text = raw.strip()

        match = MMDDYYYY_RE.match(text)
        if match:
            month, day, year = (int(g) for g in match.groups())
            return _to_yyyy_mm_dd(year, month, day)

        match = YYYYMD_RE.match(text)
        if match:
            year, month, day = (int(g) for g in match.groups())
            return _to_yyyy_mm_dd(year, month, day)

        # Free text must name its year; anything else is left for the commit step to reject
        if not YEAR_RE.search(text):
            return text

        # Missing month and day default to January 1st, so "March 2026" reads as 2026-03-01
        default = datetime.datetime(2000, 1, 1)
        try:
            parsed = dateutil.parser.parse(text, default=default)
        except (ValueError, OverflowError):
            return text
        return _to_yyyy_mm_dd(parsed.year, parsed.month, parsed.day)

    # datetime and pandas.Timestamp are both date subclasses
    if isinstance(raw, datetime.date):
        return _to_yyyy_mm_dd(raw.year, raw.month, raw.day)

    if _is_number(raw):
        return excel_serial_to_iso(raw)

    return None


def normalize_month_year_or_date(raw) -> Optional[str]:
    """Like normalize_date_only, but also reads ``M/YYYY`` as the first of that month."""
    if isinstance(raw, str):
        match = MONTH_YEAR_RE.match(raw.strip())
        if match:
            month, year = int(match.group(1)), int(match.group(2))
            if 1 <= month <= 12:
                return _to_yyyy_mm_dd(year, month, 1)
    return normalize_date_only(raw)


def _non_finite(value: Decimal) -> float:
    return float("nan") if value.is_nan() else float(value)


def normalize_money(raw) -> Union[Decimal, float, None]:
    """
    Round a money cell to cents, half-up.

    Non-finite input (including text that is not a number) comes back as a
    float NaN/inf so the validator can report it.
    """
    if _is_missing(raw):
        return None

    if isinstance(raw, Decimal):
        if not raw.is_finite():
            return _non_finite(raw)
        return raw.quantize(CENT, rounding=ROUND_HALF_UP)

    if isinstance(raw, float):
        if not math.isfinite(raw):
            return raw
        # repr round-trips, so 2.675 stays 2.675 instead of 2.67499...
        return Decimal(repr(raw)).quantize(CENT, rounding=ROUND_HALF_UP)

    text = str(raw).strip().replace(",", "")
    try:
        value = Decimal(text)
    except InvalidOperation:
        return float("nan")
    if not value.is_finite():
        return _non_finite(value)
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def clean_text(raw) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, float):
        if math.isnan(raw):
            return None
        if raw.is_integer():
            # Numeric cells such as PO numbers come back from pandas as 1234.0
            raw = int(raw)
    text = str(raw).strip()
    return text or None


def normalize_integer(raw) -> Optional[int]:
    """Parse an integer cell, dropping thousands separators and truncating toward zero."""
    if _is_missing(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, Decimal):
        if raw.is_nan():
            return None
        number = float(raw)
    elif isinstance(raw, float):
        number = raw
    else:
        try:
            number = float(str(raw).strip().replace(",", ""))
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return math.trunc(number)


def parse_iso_date(raw) -> Optional[datetime.date]:
    """
    Strict commit-time date parser: ISO 8601 text or a date object only.

    Raises ValueError for anything else, including the free-form strings that
    normalize_date_only lets through.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime.datetime):
        return raw.date()
    if isinstance(raw, datetime.date):
        return raw
    if not isinstance(raw, str):
        raise ValueError(f"Not a date: {raw!r}")
    text = raw.strip()
    if not text:
        return None
    return dateutil.parser.isoparse(text).date()
