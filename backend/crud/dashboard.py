import datetime
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from models.iar import Iar
from models.procured_meds import ProcuredMed
from utils.status import DeliveryStatus, derive_parent_status, derive_status

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Column order and headings of the DPRI-B spreadsheet export
DPRI_B_EXPORT_COLUMNS = [
    ("po_number", "PO Number"),
    ("po_date", "PO Date"),
    ("supplier", "Supplier"),
    ("mode_of_procurement", "Mode of Procurement"),
    ("generic_name", "Generic Name of Medicine with Strength Dosage / Form"),
    ("acquisition_cost", "Acquisition Cost"),
    ("quantity", "Quantity"),
    ("total_cost", "Total Cost"),
    ("brand_name", "Brand Name"),
    ("manufacturer", "Manufacturer"),
    ("delivery_status", "Delivery Status"),
    ("bid_attempt", "Bid Attempt"),
]


def inspected_totals(db: Session, po_number: Optional[str] = None) -> Dict[Tuple[str, int], int]:
    """Sum of inspected quantity per (po_number, item_number) across every IAR."""
    query = db.query(Iar.po_number, Iar.item_number, Iar.inspected_quantity)
    if po_number is not None:
        query = query.filter(Iar.po_number == po_number)

    totals: Dict[Tuple[str, int], int] = {}
    for iar_po, item_number, quantity in query.all():
        key = (iar_po, item_number)
        totals[key] = totals.get(key, 0) + (quantity or 0)
    return totals


def _sort_newest_first(items: List[dict], date_field: str, name_field: str) -> List[dict]:
    # Two stable passes: name ascending, then date descending with missing dates last
    items = sorted(items, key=lambda item: item[name_field])
    return sorted(items, key=lambda item: item[date_field] or datetime.date.min, reverse=True)


def list_po_summaries(db: Session) -> List[dict]:
    totals = inspected_totals(db)
    rows = db.query(ProcuredMed).order_by(
        ProcuredMed.po_date.desc(), ProcuredMed.po_number.asc(), ProcuredMed.item_no.asc()
    ).all()

    grouped: Dict[str, dict] = {}
    for row in rows:
        status = derive_status(row.quantity, totals.get((row.po_number, row.item_no), 0))
        summary = grouped.get(row.po_number)
        if summary is None:
            grouped[row.po_number] = {
                "po_number": row.po_number,
                "po_date": row.po_date,
                "supplier": row.supplier,
                "item_count": 1,
                "statuses": [status],
            }
            continue
        summary["item_count"] += 1
        summary["statuses"].append(status)
        if summary["po_date"] is None and row.po_date is not None:
            summary["po_date"] = row.po_date
        if summary["supplier"] is None and row.supplier is not None:
            summary["supplier"] = row.supplier

    summaries = []
    for summary in grouped.values():
        statuses = summary.pop("statuses")
        summary["status"] = derive_parent_status(statuses)
        summaries.append(summary)
    return _sort_newest_first(summaries, "po_date", "po_number")


def get_po_details(db: Session, po_number: str) -> Optional[dict]:
    """
    Header and line items of one purchase order, each line with how much has
    been inspected so far. Returns None when the PO has no line items.
    """
    rows = db.query(ProcuredMed).filter(
        ProcuredMed.po_number == po_number
    ).order_by(ProcuredMed.item_no.asc()).all()
    if not rows:
        return None

    totals = inspected_totals(db, po_number)
    items = []
    for row in rows:
        inspected = totals.get((row.po_number, row.item_no), 0)
        items.append({
            "item_no": row.item_no,
            "generic_name": row.generic_name,
            "brand_name": row.brand_name,
            "manufacturer": row.manufacturer,
            "acquisition_cost": row.acquisition_cost,
            "quantity": row.quantity,
            "total_cost": row.total_cost,
            "inspected_quantity": inspected,
            "inspection_status": derive_status(row.quantity, inspected),
        })

    first = rows[0]
    return {
        "po_number": po_number,
        "po_date": first.po_date,
        "supplier": first.supplier,
        "mode_of_procurement": first.mode_of_procurement,
        "item_count": len(rows),
        "status": derive_parent_status(item["inspection_status"] for item in items),
        "items": items,
    }


def _created_at_key(created_at: Optional[datetime.datetime]) -> float:
    return created_at.timestamp() if created_at else 0


def list_po_iars(db: Session, po_number: str) -> List[dict]:
    rows = db.query(Iar).filter(Iar.po_number == po_number).order_by(
        Iar.created_at.desc(), Iar.iar_number.asc()
    ).all()

    grouped: Dict[str, dict] = {}
    for row in rows:
        summary = grouped.get(row.iar_number)
        if summary is None:
            grouped[row.iar_number] = {
                "iar_number": row.iar_number,
                "date_of_inspection": row.date_of_inspection,
                "items_count": 1,
                "created_at": row.created_at,
            }
            continue
        summary["items_count"] += 1
        if summary["date_of_inspection"] is None and row.date_of_inspection is not None:
            summary["date_of_inspection"] = row.date_of_inspection
        if summary["created_at"] is None and row.created_at is not None:
            summary["created_at"] = row.created_at

    summaries = sorted(grouped.values(), key=lambda s: s["iar_number"])
    return sorted(summaries, key=lambda s: _created_at_key(s["created_at"]), reverse=True)


def get_iar_items(db: Session, po_number: str, iar_number: str) -> Optional[dict]:
    rows = db.query(Iar).filter(
        Iar.po_number == po_number,
        Iar.iar_number == iar_number,
    ).order_by(Iar.item_number.asc(), Iar.created_at.asc()).all()
    if not rows:
        return None

    return {
        "po_number": po_number,
        "iar_number": iar_number,
        "date_of_inspection": rows[0].date_of_inspection,
        "total_inspected_quantity": sum(row.inspected_quantity or 0 for row in rows),
        "items": rows,
    }


def list_recent_iars(db: Session) -> List[dict]:
    """Each IAR number once, newest inspection first; the first row seen wins."""
    rows = db.query(Iar.iar_number, Iar.date_of_inspection, Iar.po_number).order_by(
        Iar.date_of_inspection.desc(), Iar.iar_number.asc()
    ).all()

    seen = set()
    recent = []
    for iar_number, date_of_inspection, po_number in rows:
        if iar_number in seen:
            continue
        seen.add(iar_number)
        recent.append({
            "iar_number": iar_number,
            "date_of_inspection": date_of_inspection,
            "po_number": po_number,
        })
    return recent


def effective_acquisition_cost(acquisition_cost, total_cost, quantity) -> Optional[Decimal]:
    """Unit cost as stored, or total cost spread over quantity when the unit cost is missing."""
    if acquisition_cost is not None:
        return Decimal(acquisition_cost)
    if total_cost is None or quantity is None or quantity <= 0:
        return None
    return (Decimal(total_cost) / quantity).quantize(CENT, rounding=ROUND_HALF_UP)


def _filter_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, DeliveryStatus):
        return value.value
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value)


def _matches(row: dict, filters: Dict[str, str]) -> bool:
    for field, needle in filters.items():
        needle = (needle or "").strip().lower()
        if needle and needle not in _filter_text(row.get(field)).lower():
            return False
    return True


def build_dpri_b_report(db: Session, filters: Optional[Dict[str, str]] = None) -> List[dict]:
    """
    Every procured line with its delivery status, newest PO first.

    ``filters`` maps a report field to a case-insensitive substring; blank
    needles are ignored.
    """
    totals = inspected_totals(db)
    rows = db.query(ProcuredMed).order_by(
        ProcuredMed.po_date.desc().nullslast(), ProcuredMed.po_number.asc(), ProcuredMed.item_no.asc()
    ).all()

    report = []
    for row in rows:
        report.append({
            "po_number": row.po_number,
            "item_no": row.item_no,
            "po_date": row.po_date,
            "supplier": row.supplier,
            "mode_of_procurement": row.mode_of_procurement,
            "generic_name": row.generic_name,
            "acquisition_cost": effective_acquisition_cost(row.acquisition_cost, row.total_cost, row.quantity),
            "quantity": row.quantity,
            "total_cost": row.total_cost,
            "brand_name": row.brand_name,
            "manufacturer": row.manufacturer,
            "delivery_status": derive_status(row.quantity, totals.get((row.po_number, row.item_no), 0)),
            "bid_attempt": row.bid_attempt,
        })

    if filters:
        report = [entry for entry in report if _matches(entry, filters)]
    logger.debug(f"DPRI-B report built with {len(report)} rows")
    return report


def _format_money(value) -> str:
    if value is None:
        return "-"
    return f"{Decimal(value):,.2f}"


def _format_date(value) -> str:
    if value is None:
        return "-"
    return value.strftime("%b %d, %Y")


def dpri_b_export_records(report: List[dict]) -> List[dict]:
    """Report rows relabelled and formatted for the spreadsheet download."""
    records = []
    for entry in report:
        record = {}
        for field, heading in DPRI_B_EXPORT_COLUMNS:
            value = entry.get(field)
            if field in ("acquisition_cost", "total_cost"):
                value = _format_money(value)
            elif field == "po_date":
                value = _format_date(value)
            elif field == "delivery_status":
                value = value.value
            elif value is None:
                value = ""
            record[heading] = value
        records.append(record)
    return records
