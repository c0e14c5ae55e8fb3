"""Domain errors raised below the router layer.

Routers translate these into HTTPException responses. Per-row validation
problems are not exceptions; they travel as RowError data in the parse
response.
"""


class ProcurementError(Exception):
    """Base class for errors raised by the upload and insert pipelines."""


class BatchFatalError(ProcurementError):
    """A committed row failed strict parsing; the whole commit is aborted."""


class ConflictError(ProcurementError):
    """A manual insert targets a composite key that already exists."""


class SpreadsheetReadError(ProcurementError):
    """The uploaded bytes could not be decoded as a spreadsheet."""


class InfrastructureError(ProcurementError):
    """Required storage is unavailable. ``hint`` tells the operator how to fix it."""

    def __init__(self, message: str, hint: str = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class RowValidationError(ProcurementError):
    """A single submitted row (manual insert) has an invalid field."""
