import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import crud.iar as crud_iar
from database import get_db
from exceptions import ConflictError, RowValidationError
from schemas.iar import IarInserted, IarManualCreate

router = APIRouter(prefix="/iar", tags=["iar"])
logger = logging.getLogger(__name__)


@router.post("/manual", response_model=IarInserted)
def create_iar(iar: IarManualCreate, db: Session = Depends(get_db)):
    """Insert a single IAR line; its manufacturer is taken from the matching PO line."""
    try:
        db_iar = crud_iar.create_iar(db, iar)
    except RowValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Manual IAR insert failed")
        raise HTTPException(status_code=500, detail=f"Failed to insert IAR: {e}")
    return IarInserted(
        iar_number=db_iar.iar_number,
        po_number=db_iar.po_number,
        item_number=db_iar.item_number,
    )
