from typing import Iterable, List, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config import HEADER_ROW_OFFSET
from schemas.uploads import RowError

RowT = TypeVar("RowT", bound=BaseModel)


def format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic issues into one readable line, e.g. ``poNumber: PO Number is required``."""
    messages = []
    for issue in exc.errors():
        field = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        # field_validator errors come back as "Value error, <message>"
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(f"{field}: {message}" if field else message)
    return ", ".join(messages)


def validate_rows(
    rows: Iterable[dict],
    schema: Type[RowT],
    header_offset: int = HEADER_ROW_OFFSET,
) -> Tuple[List[RowT], List[RowError]]:
    """
    Check every extracted row against ``schema``.

    Bad rows are reported, never raised: each becomes a RowError whose index is
    the row's position in the spreadsheet (data row N -> N + header_offset).
    Returns (valid rows, errors).
    """
    valid: List[RowT] = []
    errors: List[RowError] = []
    for position, row in enumerate(rows):
        try:
            valid.append(schema.model_validate(row))
        except ValidationError as e:
            errors.append(RowError(index=position + header_offset, message=format_validation_error(e)))
    return valid, errors
