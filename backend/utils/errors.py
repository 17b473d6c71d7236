# backend/utils/errors.py
from typing import Optional, Sequence


class InventoryError(Exception):
    """Base class for all domain errors raised by the inventory code."""


# ---- Spreadsheet import ----
class SpreadsheetImportError(InventoryError):
    pass


class SpreadsheetReadError(SpreadsheetImportError):
    def __init__(self, message: str = "Could not read the file. Check that it is a valid Excel workbook."):
        super().__init__(message)


class EmptyFileError(SpreadsheetImportError):
    def __init__(self, message: str = "The file is empty or has no data beyond the header row."):
        super().__init__(message)


class MissingColumnsError(SpreadsheetImportError):
    def __init__(self, missing_labels: Sequence[str]):
        self.missing_labels = list(missing_labels)
        super().__init__(f"Required columns not found: {', '.join(self.missing_labels)}")


class RowValidationError(SpreadsheetImportError):
    """Composite error: one entry per offending row, message capped at `max_shown` rows."""

    def __init__(self, row_errors, max_shown: int = 5):
        self.row_errors = list(row_errors)
        shown = "; ".join(
            f"Row {e.row}: missing {', '.join(e.missing_labels)}"
            for e in self.row_errors[:max_shown]
        )
        more = ""
        if len(self.row_errors) > max_shown:
            more = f" (+{len(self.row_errors) - max_shown} more rows with errors)"
        super().__init__(f"Required fields are empty: {shown}{more}")


class ImportStateError(SpreadsheetImportError):
    pass


# ---- Data access ----
class BackendError(InventoryError):
    """Failure reported by the data layer; the message is passed through untouched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(InventoryError):
    pass


class InvalidKitError(InventoryError):
    pass


