import logging
from datetime import date
from io import BytesIO
from typing import List, Optional

import pandas as pd
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

import crud.dashboard as crud_dashboard
from database import get_db
from schemas.dashboard import DpriBRow

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)
logger = logging.getLogger(__name__)


def _report_filters(
    po_number: Optional[str] = None,
    po_date: Optional[str] = None,
    supplier: Optional[str] = None,
    mode_of_procurement: Optional[str] = None,
    generic_name: Optional[str] = None,
    acquisition_cost: Optional[str] = None,
    quantity: Optional[str] = None,
    total_cost: Optional[str] = None,
    brand_name: Optional[str] = None,
    manufacturer: Optional[str] = None,
    delivery_status: Optional[str] = None,
    bid_attempt: Optional[str] = None,
) -> dict:
    """Substring filters, one optional query parameter per report column."""
    filters = {
        "po_number": po_number,
        "po_date": po_date,
        "supplier": supplier,
        "mode_of_procurement": mode_of_procurement,
        "generic_name": generic_name,
        "acquisition_cost": acquisition_cost,
        "quantity": quantity,
        "total_cost": total_cost,
        "brand_name": brand_name,
        "manufacturer": manufacturer,
        "delivery_status": delivery_status,
        "bid_attempt": bid_attempt,
    }
    return {field: needle for field, needle in filters.items() if needle}


@router.get("/dpri-b", response_model=List[DpriBRow])
def get_dpri_b_report(filters: dict = Depends(_report_filters), db: Session = Depends(get_db)):
    """DPRI-B: every procured line with its delivery status."""
    return crud_dashboard.build_dpri_b_report(db, filters)


@router.get("/dpri-b/export")
def export_dpri_b_report(filters: dict = Depends(_report_filters), db: Session = Depends(get_db)):
    report = crud_dashboard.build_dpri_b_report(db, filters)
    records = crud_dashboard.dpri_b_export_records(report)
    columns = [heading for _, heading in crud_dashboard.DPRI_B_EXPORT_COLUMNS]
    df = pd.DataFrame(records, columns=columns)

    excel_file = BytesIO()
    df.to_excel(excel_file, index=False, sheet_name='DPRI-B Report')
    excel_file.seek(0)

    filename = f"dpri-b-report-{date.today().isoformat()}.xlsx"
    logger.info(f"Exporting DPRI-B report with {len(records)} rows")
    headers = {
        'Content-Disposition': f'attachment; filename="{filename}"'
    }
    return StreamingResponse(excel_file, media_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', headers=headers)
