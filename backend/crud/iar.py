import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import HEADER_ROW_OFFSET
from crud.procured_meds import get_manufacturers
from crud.reconciliation import CommitResult, reconcile_batch, strict_commit_date
from exceptions import BatchFatalError, ConflictError, RowValidationError
from models.iar import Iar
from schemas.iar import IarManualCreate, IarRow
from utils.normalizers import clean_text, parse_iso_date

logger = logging.getLogger(__name__)

KEY_FIELDS = ("iar_number", "po_number", "item_number")


def get_iar(db: Session, iar_number: str, po_number: str, item_number: int):
    return db.query(Iar).filter(
        Iar.iar_number == iar_number,
        Iar.po_number == po_number,
        Iar.item_number == item_number,
    ).first()


def prepare_commit_rows(rows: List[IarRow]) -> List[dict]:
    prepared = []
    for idx, row in enumerate(rows):
        row_number = idx + HEADER_ROW_OFFSET
        date_of_inspection = strict_commit_date(row.date_of_inspection, "inspection date", row_number)
        if date_of_inspection is None:
            raise BatchFatalError(f"Invalid inspection date at row {row_number}: {row.date_of_inspection}")
        prepared.append({
            "iar_number": row.iar_number.strip(),
            "date_of_inspection": date_of_inspection,
            "po_number": row.po_number.strip(),
            "item_number": row.item_number,
            "inspected_quantity": row.inspected_quantity,
            "requisitioning_office": clean_text(row.requisitioning_office),
            "brand": clean_text(row.brand),
            "batch_lot_number": clean_text(row.batch_lot_number),
            "expiration_date": strict_commit_date(row.expiration_date, "expiration date", row_number),
        })
    return prepared


def backfill_manufacturers(db: Session, payload: List[dict]) -> None:
    """Copy the manufacturer of the matching PO line onto every IAR row about to be inserted."""
    manufacturers = get_manufacturers(db, ((row["po_number"], row["item_number"]) for row in payload))
    for row in payload:
        row["manufacturer"] = manufacturers.get((row["po_number"], row["item_number"]))


def commit_iars(db: Session, rows: List[IarRow]) -> CommitResult:
    prepared = prepare_commit_rows(rows)
    result = reconcile_batch(db, Iar, prepared, KEY_FIELDS, enrich=backfill_manufacturers)
    logger.info(
        f"IAR commit: received={result.total_received} "
        f"inserted={result.inserted_count} skipped={result.skipped_duplicates}"
    )
    return result


def create_iar(db: Session, data: IarManualCreate) -> Iar:
    """Insert one IAR line typed in by hand, with the manufacturer looked up from its PO line."""
    try:
        date_of_inspection = parse_iso_date(data.date_of_inspection)
    except (ValueError, OverflowError):
        date_of_inspection = None
    if date_of_inspection is None:
        raise RowValidationError("Invalid inspection date.")

    try:
        expiration_date = parse_iso_date(data.expiration_date)
    except (ValueError, OverflowError):
        raise RowValidationError("Invalid expiration date.")

    manufacturers = get_manufacturers(db, [(data.po_number, data.item_number)])

    if get_iar(db, data.iar_number, data.po_number, data.item_number):
        raise ConflictError("IAR number, PO number, and item number already exist.")

    db_iar = Iar(
        iar_number=data.iar_number,
        date_of_inspection=date_of_inspection,
        po_number=data.po_number,
        item_number=data.item_number,
        inspected_quantity=data.inspected_quantity,
        requisitioning_office=data.requisitioning_office,
        brand=data.brand,
        manufacturer=manufacturers.get((data.po_number, data.item_number)),
        batch_lot_number=data.batch_lot_number,
        expiration_date=expiration_date,
    )
    db.add(db_iar)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"IAR {data.iar_number} for {data.po_number}/{data.item_number} was inserted concurrently")
        raise ConflictError("IAR number, PO number, and item number already exist.")
    db.refresh(db_iar)
    logger.info(f"IAR {db_iar.iar_number} for {db_iar.po_number}/{db_iar.item_number} inserted manually")
    return db_iar
