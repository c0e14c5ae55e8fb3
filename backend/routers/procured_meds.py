import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import crud.procured_meds as crud_procured_meds
from database import get_db
from exceptions import ConflictError, RowValidationError
from schemas.procured_meds import (
    DistinctModes,
    DistinctPoNumbers,
    DistinctSuppliers,
    ProcuredMedInserted,
    ProcuredMedManualCreate,
)

router = APIRouter(tags=["procured-meds"])
logger = logging.getLogger(__name__)


@router.post("/procured-meds/manual", response_model=ProcuredMedInserted)
def create_procured_med(item: ProcuredMedManualCreate, db: Session = Depends(get_db)):
    """Insert a single PO line item."""
    try:
        db_item = crud_procured_meds.create_procured_med(db, item)
    except RowValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Manual procured med insert failed")
        raise HTTPException(status_code=500, detail=f"Failed to insert procured medicine: {e}")
    return ProcuredMedInserted(po_number=db_item.po_number, item_no=db_item.item_no)


@router.get("/procured-meds/po-numbers", response_model=DistinctPoNumbers)
def get_po_numbers(db: Session = Depends(get_db)):
    return DistinctPoNumbers(po_numbers=crud_procured_meds.get_po_numbers(db))


@router.get("/suppliers", response_model=DistinctSuppliers)
def get_suppliers(db: Session = Depends(get_db)):
    return DistinctSuppliers(suppliers=crud_procured_meds.get_suppliers(db))


@router.get("/modes-of-procurement", response_model=DistinctModes)
def get_modes_of_procurement(db: Session = Depends(get_db)):
    return DistinctModes(modes=crud_procured_meds.get_modes_of_procurement(db))
