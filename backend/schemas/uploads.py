from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel

# Money travels as a JSON number, not pydantic's default decimal string
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase keys on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def require_text(value, label: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{label} is required")
    return value


class RowError(CamelModel):
    index: int  # spreadsheet row number, header included
    message: str


class ParseResponseBase(CamelModel):
    sheet_name: str
    total_rows: int
    valid_rows_count: int
    errors: List[RowError] = []


class CommitResponseBase(CamelModel):
    inserted_count: int
    total_received: int
    skipped_duplicates: int


class CommitLogBase(CamelModel):
    result: str  # inserted | skipped
    reason: Optional[str] = None  # already_exists | duplicate_in_upload


class InsertedResponse(CamelModel):
    message: str = "Inserted"
