import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import crud.iar as crud_iar
from config import HEADER_ALIASES, PREVIEW_LIMIT
from crud.reconciliation import ledger_without_positions
from database import get_db
from exceptions import BatchFatalError, SpreadsheetReadError
from schemas.iar import IarCommitRequest, IarCommitResponse, IarParseResponse, IarRow
from utils.extractors import extract_iar_row
from utils.row_validation import validate_rows
from utils.spreadsheet import read_first_sheet

router = APIRouter(prefix="/upload-iar", tags=["upload-iar"])
logger = logging.getLogger(__name__)


@router.post("/parse", response_model=IarParseResponse)
def parse_iar(file: Optional[UploadFile] = File(None)):
    """Read an IAR workbook; brand, batch/lot and expiry are pulled out of the Particulars text."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    contents = file.file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        sheet_name, raw_rows = read_first_sheet(contents, file.filename)
    except SpreadsheetReadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    aliases = HEADER_ALIASES["iar"]
    extracted = [extract_iar_row(raw, aliases) for raw in raw_rows]
    valid_rows, errors = validate_rows(extracted, IarRow)

    logger.info(
        f"Parsed IAR upload '{file.filename}': {len(extracted)} rows, "
        f"{len(valid_rows)} valid, {len(errors)} with errors"
    )
    return IarParseResponse(
        sheet_name=sheet_name,
        total_rows=len(extracted),
        valid_rows_count=len(valid_rows),
        errors=errors,
        preview=valid_rows[:PREVIEW_LIMIT],
        all_valid_rows=valid_rows,
    )


@router.post("/commit", response_model=IarCommitResponse, response_model_exclude_none=True)
def commit_iar(payload: IarCommitRequest, db: Session = Depends(get_db)):
    try:
        result = crud_iar.commit_iars(db, payload.rows)
    except BatchFatalError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError as e:
        logger.exception("IAR commit failed")
        raise HTTPException(status_code=500, detail=f"Failed to commit IAR rows: {e}")

    return IarCommitResponse(
        inserted_count=result.inserted_count,
        total_received=result.total_received,
        skipped_duplicates=result.skipped_duplicates,
        logs=ledger_without_positions(result.logs),
    )
