from typing import Annotated, List, Optional

from pydantic import Field, StringConstraints, field_validator

from schemas.uploads import (
    CamelModel,
    CommitLogBase,
    CommitResponseBase,
    InsertedResponse,
    ParseResponseBase,
    require_text,
)

TrimmedText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class IarRow(CamelModel):
    """An inspected line as extracted from an IAR spreadsheet row.

    ``manufacturer`` is absent on purpose: it is copied from the matching
    procured-medicine line at commit time.
    """
    iar_number: str
    date_of_inspection: str
    po_number: str
    item_number: int = Field(ge=0)
    inspected_quantity: int = Field(ge=0)

    requisitioning_office: Optional[str] = None
    brand: Optional[str] = None
    batch_lot_number: Optional[str] = None
    expiration_date: Optional[str] = None

    @field_validator('iar_number', 'date_of_inspection', 'po_number', mode='before')
    @classmethod
    def validate_required_text(cls, v, info):
        return require_text(v, info.field_name)

    @field_validator('item_number', 'inspected_quantity', mode='before')
    @classmethod
    def validate_required_int(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} is required")
        return v


class IarParseResponse(ParseResponseBase):
    preview: List[IarRow] = []
    all_valid_rows: List[IarRow] = []


class IarCommitRequest(CamelModel):
    rows: List[IarRow]


class IarCommitLog(CommitLogBase):
    iar_number: str
    po_number: str
    item_number: int


class IarCommitResponse(CommitResponseBase):
    logs: List[IarCommitLog] = []


class IarManualCreate(CamelModel):
    iar_number: TrimmedText
    date_of_inspection: TrimmedText
    po_number: TrimmedText
    item_number: int = Field(ge=1)
    inspected_quantity: int = Field(ge=0)
    requisitioning_office: Optional[TrimmedText] = None
    brand: Optional[TrimmedText] = None
    batch_lot_number: Optional[TrimmedText] = None
    expiration_date: Optional[TrimmedText] = None


class IarInserted(InsertedResponse):
    iar_number: str
    po_number: str
    item_number: int
