"""
Map raw spreadsheet rows onto the procured-medicine and IAR upload schemas.

Headers are matched through the alias table in config (case and whitespace
insensitive), and a few composite cells are split into their parts.
"""

import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from utils.normalizers import (
    clean_text,
    normalize_date_only,
    normalize_integer,
    normalize_money,
    normalize_month_year_or_date,
)
from utils.spreadsheet import lookup_field

QUOTED_RE = re.compile(r'"([^"]*)"')
TRAILING_QUOTED_RE = re.compile(r'"(.*?)"\s*$')
TRAILING_PUNCT_RE = re.compile(r"[,\s]+$")

BATCH_LABEL_RE = re.compile(
    r"\b(?:B/L|Batch\s*/\s*Lot|Batch|Lot)\b(?:\s*(?:Number|No\b|#))?\.?\s*[:#]?\s*([^;,\n\":#\s][^;,\n\"]*)",
    re.IGNORECASE,
)
EXPIRY_LABEL_RE = re.compile(
    r"\b(?:Expiration|Expiry|Exp)\b(?:\s*Date)?\.?\s*[:#]?\s*([^;,\n\":#\s][^;,\n\"]*)",
    re.IGNORECASE,
)
INLINE_EXPIRY_RE = re.compile(
    r"(?<![\d/-])(\d{4}-\d{1,2}-\d{1,2}|\d{1,2}/\d{4})(?![\d/-])"
)
BATCH_CANDIDATE_RE = re.compile(r"^[A-Za-z0-9-]{5,}$")
DATE_LIKE_RE = re.compile(
    r"^(?:\d{4}-\d{1,2}(?:-\d{1,2})?|\d{1,2}-\d{4}|\d{1,2}-\d{1,2}-\d{4})$"
)
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ParticularsParts(NamedTuple):
    brand: Optional[str]
    batch_lot_number: Optional[str]
    expiration_date: Optional[str]


def _strip_trailing(text: str) -> str:
    return TRAILING_PUNCT_RE.sub("", text).strip()


def split_generic_and_brand(generic_raw, brand_raw) -> Tuple[Optional[str], Optional[str]]:
    """
    Separate the generic description from the brand.

    Source sheets often write the brand in quotes at the end of the generic
    cell, e.g. ``Paracetamol 500mg tablet, "Biogesic"``. An explicit brand
    column always wins; the quoted text is then dropped from the generic name.
    Returns (generic_name, brand_name).
    """
    explicit_brand = clean_text(brand_raw)
    generic_text = clean_text(generic_raw)

    if not generic_text:
        return None, explicit_brand

    if explicit_brand:
        generic = _strip_trailing(QUOTED_RE.sub("", generic_text))
        return generic or None, explicit_brand

    match = TRAILING_QUOTED_RE.search(generic_text)
    if match and match.group(1).strip():
        generic = _strip_trailing(generic_text[:match.start()])
        return generic or None, match.group(1).strip()

    return generic_text, explicit_brand


def _fallback_batch(text: str) -> Optional[str]:
    for line in text.splitlines():
        candidate = line.strip()
        if (
            BATCH_CANDIDATE_RE.match(candidate)
            and any(ch.isdigit() for ch in candidate)
            and not DATE_LIKE_RE.match(candidate)
        ):
            return candidate
    return None


def parse_particulars(raw) -> ParticularsParts:
    """
    Pull brand, batch/lot number and expiry out of a free-text particulars cell.

    Labelled values (``Batch:``, ``Lot No.``, ``B/L:``, ``Exp:``, ``Expiry``)
    are preferred; unlabelled ones are guessed from the remaining text.
    """
    text = clean_text(raw)
    if not text:
        return ParticularsParts(None, None, None)

    brand_match = QUOTED_RE.search(text)
    brand = clean_text(brand_match.group(1)) if brand_match else None

    batch_match = BATCH_LABEL_RE.search(text)
    if batch_match:
        batch_lot_number = clean_text(batch_match.group(1))
    else:
        batch_lot_number = _fallback_batch(text)

    expiry_match = EXPIRY_LABEL_RE.search(text)
    expiry_raw = expiry_match.group(1) if expiry_match else None
    if not clean_text(expiry_raw):
        inline = INLINE_EXPIRY_RE.search(text)
        expiry_raw = inline.group(1) if inline else None

    expiration_date = normalize_month_year_or_date(clean_text(expiry_raw))
    if expiration_date and not ISO_DATE_RE.match(expiration_date):
        expiration_date = None

    return ParticularsParts(brand, batch_lot_number, expiration_date)


def extract_procured_med_row(raw_row: Dict[str, object], aliases: Dict[str, List[str]]) -> dict:
    def get(field):
        return lookup_field(raw_row, aliases.get(field, []))

    generic_name, brand_name = split_generic_and_brand(get("generic_name"), get("brand_name"))

    return {
        "po_number": clean_text(get("po_number")),
        "item_no": normalize_integer(get("item_no")),
        "po_date": normalize_date_only(get("po_date")),
        "supplier": clean_text(get("supplier")),
        "mode_of_procurement": clean_text(get("mode_of_procurement")),
        "generic_name": generic_name,
        "brand_name": brand_name,
        "manufacturer": clean_text(get("manufacturer")),
        "acquisition_cost": normalize_money(get("acquisition_cost")),
        "quantity": normalize_integer(get("quantity")),
        "total_cost": normalize_money(get("total_cost")),
        "delivery_status": clean_text(get("delivery_status")),
        "bid_attempt": normalize_integer(get("bid_attempt")),
    }


def extract_iar_row(raw_row: Dict[str, object], aliases: Dict[str, List[str]]) -> dict:
    def get(field):
        return lookup_field(raw_row, aliases.get(field, []))

    particulars = parse_particulars(get("particulars"))

    return {
        "iar_number": clean_text(get("iar_number")),
        "date_of_inspection": normalize_date_only(get("date_of_inspection")),
        "po_number": clean_text(get("po_number")),
        "item_number": normalize_integer(get("item_number")),
        "inspected_quantity": normalize_integer(get("inspected_quantity")),
        "requisitioning_office": clean_text(get("requisitioning_office")),
        "brand": particulars.brand,
        "batch_lot_number": particulars.batch_lot_number,
        "expiration_date": particulars.expiration_date,
    }
