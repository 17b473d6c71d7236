# backend/schemas/imports.py
from typing import Any, Dict, List, Literal
from pydantic import BaseModel


class ImportColumn(BaseModel):
    key: str
    label: str
    required: bool
    value_type: Literal["string", "number"]


class ImportPreview(BaseModel):
    session_id: str
    entity: str
    state: str
    total: int
    columns: List[ImportColumn]
    rows: List[Dict[str, Any]]


class ImportResult(BaseModel):
    imported: int
    message: str
