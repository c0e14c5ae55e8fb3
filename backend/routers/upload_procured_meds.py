import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import crud.procured_meds as crud_procured_meds
from config import HEADER_ALIASES, PREVIEW_LIMIT
from crud.reconciliation import ledger_without_positions
from database import get_db
from exceptions import BatchFatalError, SpreadsheetReadError
from schemas.procured_meds import (
    ProcuredMedCommitRequest,
    ProcuredMedCommitResponse,
    ProcuredMedParseResponse,
    ProcuredMedRow,
)
from utils.extractors import extract_procured_med_row
from utils.row_validation import validate_rows
from utils.spreadsheet import read_first_sheet

router = APIRouter(prefix="/upload-procured-meds", tags=["upload-procured-meds"])
logger = logging.getLogger(__name__)


@router.post("/parse", response_model=ProcuredMedParseResponse)
def parse_procured_meds(file: Optional[UploadFile] = File(None)):
    """
    Read a procured-medicine workbook and report which rows would be accepted.

    Nothing is stored; the client sends ``allValidRows`` back to ``/commit``.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    contents = file.file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        sheet_name, raw_rows = read_first_sheet(contents, file.filename)
    except SpreadsheetReadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    aliases = HEADER_ALIASES["procured_meds"]
    extracted = [extract_procured_med_row(raw, aliases) for raw in raw_rows]
    valid_rows, errors = validate_rows(extracted, ProcuredMedRow)

    logger.info(
        f"Parsed procured meds upload '{file.filename}': {len(extracted)} rows, "
        f"{len(valid_rows)} valid, {len(errors)} with errors"
    )
    return ProcuredMedParseResponse(
        sheet_name=sheet_name,
        total_rows=len(extracted),
        valid_rows_count=len(valid_rows),
        errors=errors,
        preview=valid_rows[:PREVIEW_LIMIT],
        all_valid_rows=valid_rows,
    )


@router.post("/commit", response_model=ProcuredMedCommitResponse, response_model_exclude_none=True)
def commit_procured_meds(payload: ProcuredMedCommitRequest, db: Session = Depends(get_db)):
    """Store validated rows, skipping keys repeated in the batch or already stored."""
    try:
        result = crud_procured_meds.commit_procured_meds(db, payload.rows)
    except BatchFatalError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError as e:
        logger.exception("Procured meds commit failed")
        raise HTTPException(status_code=500, detail=f"Failed to commit procured medicines: {e}")

    return ProcuredMedCommitResponse(
        inserted_count=result.inserted_count,
        total_received=result.total_received,
        skipped_duplicates=result.skipped_duplicates,
        logs=ledger_without_positions(result.logs),
    )
