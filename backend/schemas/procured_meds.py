from typing import Annotated, List, Optional

from pydantic import Field, StringConstraints, field_validator

from schemas.uploads import (
    CamelModel,
    CommitLogBase,
    CommitResponseBase,
    InsertedResponse,
    Money,
    ParseResponseBase,
    require_text,
)

TrimmedText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ProcuredMedRow(CamelModel):
    """A purchase-order line as extracted from a spreadsheet row.

    Dates stay strings (YYYY-MM-DD after normalization) until commit.
    """
    po_number: str
    item_no: int = Field(ge=0)

    po_date: Optional[str] = None
    supplier: Optional[str] = None
    mode_of_procurement: Optional[str] = None

    generic_name: Optional[str] = None
    brand_name: Optional[str] = None
    manufacturer: Optional[str] = None
    acquisition_cost: Optional[Money] = Field(default=None, allow_inf_nan=False)
    quantity: Optional[int] = Field(default=None, ge=0)
    total_cost: Optional[Money] = Field(default=None, allow_inf_nan=False)
    delivery_status: Optional[str] = None
    bid_attempt: Optional[int] = Field(default=None, ge=0)

    @field_validator('po_number', mode='before')
    @classmethod
    def validate_po_number(cls, v):
        return require_text(v, "PO Number")

    @field_validator('item_no', mode='before')
    @classmethod
    def validate_item_no(cls, v):
        if v is None:
            raise ValueError("Item No is required")
        return v


class ProcuredMedParseResponse(ParseResponseBase):
    preview: List[ProcuredMedRow] = []
    all_valid_rows: List[ProcuredMedRow] = []


class ProcuredMedCommitRequest(CamelModel):
    rows: List[ProcuredMedRow]


class ProcuredMedCommitLog(CommitLogBase):
    po_number: str
    item_no: int


class ProcuredMedCommitResponse(CommitResponseBase):
    logs: List[ProcuredMedCommitLog] = []


class ProcuredMedManualCreate(CamelModel):
    po_number: TrimmedText
    item_no: int = Field(ge=1)
    po_date: Optional[TrimmedText] = None
    supplier: Optional[TrimmedText] = None
    mode_of_procurement: Optional[TrimmedText] = None
    generic_name: Optional[TrimmedText] = None
    acquisition_cost: Optional[Money] = Field(default=None, allow_inf_nan=False)
    quantity: Optional[int] = Field(default=None, ge=0)
    total_cost: Optional[Money] = Field(default=None, allow_inf_nan=False)
    brand_name: Optional[TrimmedText] = None
    manufacturer: Optional[TrimmedText] = None
    delivery_status: Optional[TrimmedText] = None
    bid_attempt: Optional[int] = Field(default=None, ge=0)


class ProcuredMedInserted(InsertedResponse):
    po_number: str
    item_no: int


class DistinctPoNumbers(CamelModel):
    po_numbers: List[str]


class DistinctSuppliers(CamelModel):
    suppliers: List[str]


class DistinctModes(CamelModel):
    modes: List[str]
