from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud.dashboard as crud_dashboard
from database import get_db
from schemas.dashboard import IarItems, PoDetails, PoIarSummary, PoSummary, RecentIar

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/pos", response_model=List[PoSummary])
def list_pos(db: Session = Depends(get_db)):
    """One row per purchase order with its rolled-up delivery status."""
    return crud_dashboard.list_po_summaries(db)


@router.get("/iars", response_model=List[RecentIar])
def list_recent_iars(db: Session = Depends(get_db)):
    return crud_dashboard.list_recent_iars(db)


@router.get("/{po_number}", response_model=PoDetails)
def get_po(po_number: str, db: Session = Depends(get_db)):
    details = crud_dashboard.get_po_details(db, po_number)
    if details is None:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return details


@router.get("/{po_number}/iars", response_model=List[PoIarSummary])
def list_po_iars(po_number: str, db: Session = Depends(get_db)):
    return crud_dashboard.list_po_iars(db, po_number)


@router.get("/{po_number}/iars/{iar_number}", response_model=IarItems)
def get_iar_items(po_number: str, iar_number: str, db: Session = Depends(get_db)):
    items = crud_dashboard.get_iar_items(db, po_number, iar_number)
    if items is None:
        raise HTTPException(status_code=404, detail="IAR not found for this purchase order")
    return items
