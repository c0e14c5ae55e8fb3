import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import HEADER_ROW_OFFSET, RECONCILE_CHUNK_SIZE
from crud.reconciliation import CommitResult, chunked, reconcile_batch, strict_commit_date
from exceptions import ConflictError, RowValidationError
from models.procured_meds import ProcuredMed
from schemas.procured_meds import ProcuredMedManualCreate, ProcuredMedRow
from utils.normalizers import clean_text, normalize_money, parse_iso_date

logger = logging.getLogger(__name__)

KEY_FIELDS = ("po_number", "item_no")


def get_procured_med(db: Session, po_number: str, item_no: int):
    return db.query(ProcuredMed).filter(
        ProcuredMed.po_number == po_number,
        ProcuredMed.item_no == item_no,
    ).first()


def prepare_commit_rows(rows: List[ProcuredMedRow]) -> List[dict]:
    """
    Turn validated upload rows into column values.

    A date that does not parse strictly aborts the whole batch; no row is
    written in that case.
    """
    prepared = []
    for idx, row in enumerate(rows):
        prepared.append({
            "po_number": row.po_number.strip(),
            "item_no": row.item_no,
            "po_date": strict_commit_date(row.po_date, "PO date", idx + HEADER_ROW_OFFSET),
            "supplier": clean_text(row.supplier),
            "mode_of_procurement": clean_text(row.mode_of_procurement),
            "generic_name": clean_text(row.generic_name),
            "brand_name": clean_text(row.brand_name),
            "manufacturer": clean_text(row.manufacturer),
            "acquisition_cost": normalize_money(row.acquisition_cost),
            "quantity": row.quantity,
            "total_cost": normalize_money(row.total_cost),
            "delivery_status": clean_text(row.delivery_status),
            "bid_attempt": row.bid_attempt,
        })
    return prepared


def commit_procured_meds(db: Session, rows: List[ProcuredMedRow]) -> CommitResult:
    prepared = prepare_commit_rows(rows)
    result = reconcile_batch(db, ProcuredMed, prepared, KEY_FIELDS)
    logger.info(
        f"Procured meds commit: received={result.total_received} "
        f"inserted={result.inserted_count} skipped={result.skipped_duplicates}"
    )
    return result


def create_procured_med(db: Session, data: ProcuredMedManualCreate) -> ProcuredMed:
    """Insert one line item typed in by hand. An existing key is a conflict, not a skip."""
    if get_procured_med(db, data.po_number, data.item_no):
        raise ConflictError("PO number and item number already exist.")

    try:
        po_date = parse_iso_date(data.po_date)
    except (ValueError, OverflowError):
        raise RowValidationError("Invalid PO date.")

    db_item = ProcuredMed(
        po_number=data.po_number,
        item_no=data.item_no,
        po_date=po_date,
        supplier=data.supplier,
        mode_of_procurement=data.mode_of_procurement,
        generic_name=data.generic_name,
        acquisition_cost=normalize_money(data.acquisition_cost),
        quantity=data.quantity,
        total_cost=normalize_money(data.total_cost),
        brand_name=data.brand_name,
        manufacturer=data.manufacturer,
        delivery_status=data.delivery_status,
        bid_attempt=data.bid_attempt,
    )
    db.add(db_item)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Procured med {data.po_number}/{data.item_no} was inserted concurrently")
        raise ConflictError("PO number and item number already exist.")
    db.refresh(db_item)
    logger.info(f"Procured med {db_item.po_number}/{db_item.item_no} inserted manually")
    return db_item


def get_manufacturers(
    db: Session,
    pairs: Iterable[Tuple[str, int]],
    chunk_size: int = RECONCILE_CHUNK_SIZE,
) -> Dict[Tuple[str, int], Optional[str]]:
    """Manufacturer of each (po_number, item_no) line, trimmed; blank becomes None."""
    manufacturers: Dict[Tuple[str, int], Optional[str]] = {}
    for group in chunked(sorted(set(pairs)), chunk_size):
        conditions = [
            and_(ProcuredMed.po_number == po_number, ProcuredMed.item_no == item_no)
            for po_number, item_no in group
        ]
        found = db.query(ProcuredMed.po_number, ProcuredMed.item_no, ProcuredMed.manufacturer).filter(
            or_(*conditions)
        ).all()
        for po_number, item_no, manufacturer in found:
            manufacturers[(po_number, item_no)] = clean_text(manufacturer)
    return manufacturers


def _distinct_trimmed(db: Session, column) -> List[str]:
    values = db.query(column).filter(column.isnot(None)).distinct().all()
    return sorted({value.strip() for (value,) in values if value and value.strip()})


def get_po_numbers(db: Session) -> List[str]:
    return _distinct_trimmed(db, ProcuredMed.po_number)


def get_suppliers(db: Session) -> List[str]:
    return _distinct_trimmed(db, ProcuredMed.supplier)


def get_modes_of_procurement(db: Session) -> List[str]:
    return _distinct_trimmed(db, ProcuredMed.mode_of_procurement)
