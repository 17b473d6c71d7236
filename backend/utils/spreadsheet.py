# backend/utils/spreadsheet.py
"""
Spreadsheet import pipeline.

A workbook goes through: read first sheet -> match header labels against the
column spec -> drop blank rows and decode cells by column -> check required
fields on every row -> staged preview -> confirm (bulk create callback).

Validation runs to completion before anything is written, so a rejected file
never produces partial writes.
"""
import enum
import io
import logging
import re
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, Union

import pandas as pd
from openpyxl import load_workbook

from config import settings
from utils.errors import (
    EmptyFileError,
    ImportStateError,
    MissingColumnsError,
    NotFoundError,
    RowValidationError,
    SpreadsheetImportError,
    SpreadsheetReadError,
)

logger = logging.getLogger(__name__)

ValueType = Literal["string", "number"]

# Leading decimal literal, the way a lenient float parser reads "12.5kg" as 12.5
_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    label: str
    required: bool = False
    value_type: ValueType = "string"


@dataclass(frozen=True)
class DecodedRow:
    row: int                    # 1-based sheet row, header is row 1
    values: Dict[str, Any]


@dataclass(frozen=True)
class RowError:
    row: int
    missing_labels: List[str]


# ---- HELPERS ----
def _norm_label(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip().lower()


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def parse_number(value: Any) -> float:
    """'12,5' -> 12.5, '7 un' -> 7.0, 'abc' -> 0.0"""
    match = _LEADING_FLOAT.match(str(value).replace(",", ".", 1))
    if not match:
        return 0.0
    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0
    return number if number == number else 0.0


# =========================
# DECODING
# =========================
def read_grid(file_bytes: bytes) -> List[List[Any]]:
    """First worksheet as a list of rows; empty cells are None. Formulas are not evaluated."""
    try:
        workbook = load_workbook(io.BytesIO(file_bytes), data_only=True)
    except Exception as e:
        logger.warning("Could not open workbook: %s", e)
        raise SpreadsheetReadError() from e

    try:
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def decode_rows(grid: Sequence[Sequence[Any]], columns: Sequence[ColumnSpec]) -> List[DecodedRow]:
    if len(grid) < 2:
        raise EmptyFileError()

    headers = [_norm_label(h) for h in grid[0]]

    missing = [
        c.label for c in columns
        if c.required and _norm_label(c.label) not in headers
    ]
    if missing:
        raise MissingColumnsError(missing)

    # Column key -> position in the file; unknown file columns are ignored
    positions: Dict[str, Optional[int]] = {}
    for c in columns:
        label = _norm_label(c.label)
        positions[c.key] = headers.index(label) if label in headers else None

    decoded: List[DecodedRow] = []
    for offset, row in enumerate(grid[1:]):
        if all(_is_empty(cell) for cell in row):
            continue

        values: Dict[str, Any] = {}
        for c in columns:
            idx = positions[c.key]
            value = row[idx] if idx is not None and idx < len(row) else None
            if c.value_type == "number" and not _is_empty(value):
                value = parse_number(value)
            values[c.key] = value

        decoded.append(DecodedRow(row=offset + 2, values=values))
    return decoded


def check_row(decoded: DecodedRow, columns: Sequence[ColumnSpec]) -> Union[DecodedRow, RowError]:
    missing = [c.label for c in columns if c.required and _is_empty(decoded.values.get(c.key))]
    if missing:
        return RowError(row=decoded.row, missing_labels=missing)
    return decoded


def validate_rows(rows: Sequence[DecodedRow], columns: Sequence[ColumnSpec],
                  max_errors_shown: Optional[int] = None) -> List[Dict[str, Any]]:
    """Checks every row (no short-circuit) and returns the clean records."""
    results = [check_row(r, columns) for r in rows]
    errors = [r for r in results if isinstance(r, RowError)]
    if errors:
        shown = settings.IMPORT_MAX_ERRORS_SHOWN if max_errors_shown is None else max_errors_shown
        raise RowValidationError(errors, max_shown=shown)
    return [dict(r.values) for r in results]


def parse_workbook(file_bytes: bytes, columns: Sequence[ColumnSpec],
                   max_errors_shown: Optional[int] = None) -> List[Dict[str, Any]]:
    grid = read_grid(file_bytes)
    return validate_rows(decode_rows(grid, columns), columns, max_errors_shown)


def build_template(columns: Sequence[ColumnSpec], sheet_name: str = "Template") -> bytes:
    """Workbook with a single header row, labels in column order."""
    buffer = io.BytesIO()
    frame = pd.DataFrame(columns=[c.label for c in columns])
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


# =========================
# IMPORT SESSION
# =========================
class ImportState(str, enum.Enum):
    IDLE = "IDLE"
    PARSED = "PARSED"
    PREVIEW_READY = "PREVIEW_READY"
    COMMITTING = "COMMITTING"


class ImportSession:
    """
    One import attempt: load a file, look at the preview, confirm.

    ``on_import`` receives the full record list on confirm. When it fails the
    preview is dropped and the session goes back to PARSED, so the file has to
    be loaded again before another confirm.
    """

    def __init__(self, columns: Sequence[ColumnSpec],
                 on_import: Optional[Callable[[List[Dict[str, Any]]], Any]] = None,
                 entity: Optional[str] = None, preview_limit: Optional[int] = None, max_errors_shown: Optional[int] = None,
                 owner_id: Optional[int] = None, created_at: Optional[float] = None):
        self.id = uuid.uuid4().hex
        self.owner_id = owner_id
        self.created_at = time.monotonic() if created_at is None else created_at
        self.columns = list(columns)
        self.on_import = on_import
        self.entity = entity
        self.preview_limit = settings.IMPORT_PREVIEW_ROWS if preview_limit is None else preview_limit
        self.max_errors_shown = max_errors_shown
        self.state = ImportState.IDLE
        self.error: Optional[str] = None
        self._records: Optional[List[Dict[str, Any]]] = None
        self._state_lock = threading.Lock()

    @property
    def records(self) -> List[Dict[str, Any]]:
        return list(self._records or [])

    @property
    def preview_rows(self) -> List[Dict[str, Any]]:
        return self.records[: self.preview_limit]

    @property
    def total(self) -> int:
        return len(self._records or [])

    def load(self, file_bytes: bytes) -> List[Dict[str, Any]]:
        if self.state == ImportState.COMMITTING:
            raise ImportStateError("An import is already being committed.")
        self._records = None
        self.error = None
        try:
            records = parse_workbook(file_bytes, self.columns, self.max_errors_shown)
        except SpreadsheetImportError as e:
            self.state = ImportState.PARSED
            self.error = str(e)
            raise
        self._records = records
        self.state = ImportState.PREVIEW_READY
        return self.records

    def confirm(self, on_import: Optional[Callable[[List[Dict[str, Any]]], Any]] = None) -> int:
        callback = on_import or self.on_import
        # Only one confirm may claim the records
        with self._state_lock:
            if self.state != ImportState.PREVIEW_READY or self._records is None:
                raise ImportStateError("Nothing to import. Select a file first.")
            if callback is None:
                raise ImportStateError("No import target configured.")
            records = self._records
            self.state = ImportState.COMMITTING

        try:
            callback(records)
        except Exception as e:
            self.state = ImportState.PARSED
            self._records = None
            self.error = str(e) or "Import failed."
            raise

        self._records = None
        self.state = ImportState.IDLE
        return len(records)

    def cancel(self) -> None:
        self._records = None
        self.error = None
        self.state = ImportState.IDLE


class ImportSessionStore:
    """
    In-memory registry of running import sessions.

    Sessions belong to the user who uploaded the file and expire ``ttl_seconds``
    after creation, whether or not they were confirmed. Expired sessions are
    swept on every ``create`` and ``get``.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = settings.IMPORT_SESSION_TTL_MINUTES * 60 if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, ImportSession] = {}
        self._lock = threading.Lock()

    def create(self, columns: Sequence[ColumnSpec], on_import=None, entity: Optional[str] = None,
               owner_id: Optional[int] = None) -> ImportSession:
        session = ImportSession(columns, on_import, entity=entity, owner_id=owner_id, created_at=self._clock())
        with self._lock:
            self._sweep()
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str, owner_id: Optional[int] = None) -> ImportSession:
        with self._lock:
            self._sweep()
            session = self._sessions.get(session_id)
        # Someone else's session is reported exactly like a missing one
        if session is None or (owner_id is not None and session.owner_id != owner_id):
            raise NotFoundError(f"Import session {session_id} not found")
        return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def _sweep(self) -> None:
        cutoff = self._clock() - self.ttl_seconds
        expired = [sid for sid, s in self._sessions.items()
                   if s.created_at <= cutoff and s.state != ImportState.COMMITTING]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Dropped %d expired import session(s)", len(expired))

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
