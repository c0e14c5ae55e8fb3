import io
import logging
from pathlib import PurePath
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from exceptions import SpreadsheetReadError

logger = logging.getLogger(__name__)

CSV_SUFFIXES = (".csv",)


def _frame_to_rows(df: pd.DataFrame) -> List[Dict[str, object]]:
    """Turn a header-indexed frame into ordered header -> cell dicts."""
    df = df.dropna(how="all")
    df.columns = [str(col) for col in df.columns]
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def read_first_sheet(contents: bytes, filename: Optional[str] = None) -> Tuple[str, List[Dict[str, object]]]:
    """
    Decode an uploaded workbook and return (sheet name, rows) for its first sheet.

    The first row is the header. Blank cells come back as None and blank rows
    are dropped. CSV files are accepted too; their "sheet" is the file stem.
    """
    if not contents:
        raise SpreadsheetReadError("Uploaded file is empty.")

    name = filename or ""
    try:
        if name.lower().endswith(CSV_SUFFIXES):
            df = pd.read_csv(io.BytesIO(contents), dtype=object)
            sheet_name = PurePath(name).stem or "Sheet1"
        else:
            with pd.ExcelFile(io.BytesIO(contents)) as workbook:
                if not workbook.sheet_names:
                    raise SpreadsheetReadError("Workbook has no sheets.")
                sheet_name = workbook.sheet_names[0]
                df = workbook.parse(sheet_name, dtype=object)
    except SpreadsheetReadError:
        raise
    except Exception as e:
        logger.warning(f"Could not read uploaded spreadsheet '{name}': {e}")
        raise SpreadsheetReadError(f"Could not read spreadsheet: {e}") from e

    return str(sheet_name), _frame_to_rows(df)


def _header_key(header) -> str:
    return str(header).strip().lower()


def lookup_field(row: Dict[str, object], aliases: Union[str, Sequence[str]]):
    """
    Find a cell by header name, ignoring case and surrounding whitespace.

    ``aliases`` are tried in order; for each alias the first matching header
    wins, even when its cell is blank. Returns None when nothing matches.
    """
    if isinstance(aliases, str):
        aliases = [aliases]
    for alias in aliases:
        target = _header_key(alias)
        for header, value in row.items():
            if _header_key(header) == target:
                return value
    return None
