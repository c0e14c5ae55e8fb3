#!/usr/bin/env python3
"""
Copy manufacturer from procured_meds onto IAR rows that were stored without one.

IAR rows committed before manufacturer backfill existed have NULL there;
this matches each of them to its PO line by (po_number, item_number).
"""

import sys
import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Add the parent directory to sys.path to allow imports from backend
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from database import SessionLocal
from crud.procured_meds import get_manufacturers
from models.iar import Iar

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("backfill_iar_manufacturer")


def backfill_iar_manufacturer(db: Session) -> int:
    """Fill missing IAR manufacturers; returns how many rows were updated."""
    missing = db.query(Iar).filter(Iar.manufacturer.is_(None)).all()
    if not missing:
        return 0

    manufacturers = get_manufacturers(db, {(iar.po_number, iar.item_number) for iar in missing})

    updated_count = 0
    for iar in missing:
        manufacturer = manufacturers.get((iar.po_number, iar.item_number))
        if manufacturer is None:
            continue
        iar.manufacturer = manufacturer
        updated_count += 1
        logger.info(f"IAR {iar.iar_number} {iar.po_number}/{iar.item_number}: manufacturer set to {manufacturer}")

    db.commit()
    return updated_count


def main():
    db = SessionLocal()
    try:
        updated_count = backfill_iar_manufacturer(db)
        logger.info(f"Successfully updated {updated_count} IAR rows.")
    except Exception:
        db.rollback()
        logger.exception("Manufacturer backfill failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
