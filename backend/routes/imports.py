# backend/routes/imports.py
import logging
from functools import partial
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.imports import ImportColumn, ImportPreview, ImportResult
from utils.audit import write_log
from utils.errors import ImportStateError, InventoryError, NotFoundError, SpreadsheetImportError
from utils.importers import IMPORT_LAYOUTS, IMPORTERS
from utils.spreadsheet import ImportSession, ImportSessionStore, build_template
from utils.tokenJWT import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["Imports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_sessions = ImportSessionStore()


def get_import_sessions() -> ImportSessionStore:
    return _sessions


# ---- HELPERS ----
def _layout_or_404(entity: str):
    layout = IMPORT_LAYOUTS.get(entity)
    if layout is None:
        raise HTTPException(status_code=404, detail=f"Unknown import target '{entity}'")
    return layout


def _columns_out(columns):
    return [ImportColumn(key=c.key, label=c.label, required=c.required, value_type=c.value_type) for c in columns]


def _preview_out(session: ImportSession) -> ImportPreview:
    return ImportPreview(
        session_id=session.id,
        entity=session.entity,
        state=session.state.value,
        total=session.total,
        columns=_columns_out(session.columns),
        rows=session.preview_rows,
    )


# =========================
# LAYOUT / TEMPLATE
# =========================
@router.get("/{entity}/columns", response_model=List[ImportColumn])
def import_columns(entity: str, current_user: User = Depends(get_current_user)):
    columns, _ = _layout_or_404(entity)
    return _columns_out(columns)


@router.get("/{entity}/template")
def download_template(entity: str, current_user: User = Depends(get_current_user)):
    columns, file_name = _layout_or_404(entity)
    return Response(
        content=build_template(columns),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{file_name}.xlsx"'},
    )


# =========================
# PREVIEW / CONFIRM
# =========================
@router.post("/{entity}/preview", response_model=ImportPreview)
async def preview_import(
    entity: str,
    file: UploadFile = File(...),
    sessions: ImportSessionStore = Depends(get_import_sessions),
    current_user: User = Depends(get_current_user),
):
    columns, _ = _layout_or_404(entity)
    try:
        content = await file.read()
    finally:
        await file.close()

    session = sessions.create(columns, entity=entity, owner_id=current_user.id)
    try:
        session.load(content)
    except SpreadsheetImportError as e:
        # Nothing to confirm: the file has to be selected again
        sessions.discard(session.id)
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Import preview %s: %s rows for %s", session.id, session.total, entity)
    return _preview_out(session)


@router.get("/sessions/{session_id}", response_model=ImportPreview)
def get_import_session(
    session_id: str,
    sessions: ImportSessionStore = Depends(get_import_sessions),
    current_user: User = Depends(get_current_user),
):
    try:
        return _preview_out(sessions.get(session_id, owner_id=current_user.id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/sessions/{session_id}/confirm", response_model=ImportResult)
def confirm_import(
    session_id: str,
    db: Session = Depends(get_db),
    sessions: ImportSessionStore = Depends(get_import_sessions),
    current_user: User = Depends(get_current_user),
):
    try:
        session = sessions.get(session_id, owner_id=current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    importer = IMPORTERS[session.entity]
    try:
        count = session.confirm(partial(importer, db))
    except ImportStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (InventoryError, ValidationError) as e:
        db.rollback()
        write_log(db, user_id=current_user.id, action="IMPORT_COMMIT", resource=session.entity,
                  status="FAIL", meta={"session_id": session_id, "error": str(e)})
        raise HTTPException(status_code=400, detail=session.error)

    sessions.discard(session_id)
    write_log(db, user_id=current_user.id, action="IMPORT_COMMIT", resource=session.entity,
              meta={"session_id": session_id, "count": count})
    return ImportResult(imported=count, message=f"{count} item(s) imported successfully")


@router.delete("/sessions/{session_id}")
def cancel_import(
    session_id: str,
    sessions: ImportSessionStore = Depends(get_import_sessions),
    current_user: User = Depends(get_current_user),
):
    try:
        sessions.get(session_id, owner_id=current_user.id).cancel()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    sessions.discard(session_id)
    return {"detail": "Import cancelled"}
