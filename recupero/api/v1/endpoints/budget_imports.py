# recupero/api/v1/endpoints/budget_imports.py
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from recupero.api.dependencies import get_csv_upload, resolve_school_year
from recupero.core.security import AuthUser, get_current_user
from recupero.db.session import get_db
from recupero.schemas.imports import ImportCommitIn, ImportPreview, ImportResult
from recupero.services.budget_import import apply_import
from recupero.services.csv_parser import build_preview, decode_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budgets/import", tags=["budgets/import"])


async def _read_upload(file: UploadFile) -> str:
    try:
        raw = await file.read()
    finally:
        await file.close()
    return decode_upload(raw)


@router.post("/preview", response_model=ImportPreview, response_model_by_alias=True)
async def preview_import(
    current: AuthUser = Depends(get_current_user),
    file: UploadFile = Depends(get_csv_upload),
    has_header: bool = Form(True, description="false = file senza riga di intestazione"),
):
    """
    Analizza il CSV e restituisce record, errori per riga e statistiche.
    Non scrive nulla nel database.
    """
    text = await _read_upload(file)
    preview = build_preview(text, has_header=has_header)
    logger.info("Anteprima di %r richiesta da %s", file.filename, current.id)
    return preview


@router.post("", response_model=ImportResult, response_model_by_alias=True)
def commit_import(
    payload: ImportCommitIn,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Scrive i record confermati dall'anteprima (quelli con errori vengono saltati)."""
    school_year = resolve_school_year(db, payload.school_year_id)
    return apply_import(db, payload.records, school_year, payload.import_source)


@router.post("/csv", response_model=ImportResult, response_model_by_alias=True)
async def import_csv(
    current: AuthUser = Depends(get_current_user),
    file: UploadFile = Depends(get_csv_upload),
    has_header: bool = Form(True),
    school_year_id: UUID | None = Form(None),
    db: Session = Depends(get_db),
):
    """Anteprima e commit in un'unica chiamata."""
    text = await _read_upload(file)
    preview = build_preview(text, has_header=has_header)
    if preview.errors:
        raise HTTPException(status_code=400, detail="; ".join(preview.errors))

    school_year = resolve_school_year(db, school_year_id)
    return apply_import(db, preview.records, school_year, file.filename)
