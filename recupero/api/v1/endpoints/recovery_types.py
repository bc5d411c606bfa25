# recupero/api/v1/endpoints/recovery_types.py
from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recupero.core.security import AuthUser, get_current_user
from recupero.db.session import get_db
from recupero.models.activity import RecoveryActivity, RecoveryType
from recupero.schemas.activity import RecoveryTypeCreate, RecoveryTypeOut, RecoveryTypeUpdate
from recupero.schemas.filters import RecoveryTypeFilter
from recupero.services.queries import recovery_types_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recovery-types", tags=["recovery-types"])


def _to_out(recovery_type: RecoveryType, activity_count: int) -> RecoveryTypeOut:
    out = RecoveryTypeOut.model_validate(recovery_type)
    out.activity_count = activity_count or 0
    return out


def _activity_count(db: Session, recovery_type_id: UUID) -> int:
    return db.scalar(
        select(func.count(RecoveryActivity.id)).where(RecoveryActivity.recovery_type_id == recovery_type_id)
    ) or 0


def _get_or_404(db: Session, recovery_type_id: UUID) -> RecoveryType:
    recovery_type = db.get(RecoveryType, recovery_type_id)
    if not recovery_type:
        raise HTTPException(status_code=404, detail="Tipo di recupero non trovato")
    return recovery_type


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante %s", action)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=List[RecoveryTypeOut])
def list_recovery_types(
    current: AuthUser = Depends(get_current_user),
    active_only: bool = Query(False, alias="activeOnly"),
    search: str | None = Query(None, max_length=100),
    db: Session = Depends(get_db),
):
    filters = RecoveryTypeFilter(active_only=active_only, search=search)
    rows = db.execute(recovery_types_query(filters)).all()
    return [_to_out(recovery_type, count) for recovery_type, count in rows]


@router.post("", response_model=RecoveryTypeOut, status_code=status.HTTP_201_CREATED)
def create_recovery_type(
    payload: RecoveryTypeCreate,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    recovery_type = RecoveryType(**payload.model_dump(), created_by=current.id)
    db.add(recovery_type)
    _commit(db, "la creazione del tipo di recupero")
    db.refresh(recovery_type)
    return _to_out(recovery_type, 0)


@router.get("/{recovery_type_id}", response_model=RecoveryTypeOut)
def get_recovery_type(
    recovery_type_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    recovery_type = _get_or_404(db, recovery_type_id)
    return _to_out(recovery_type, _activity_count(db, recovery_type_id))


@router.put("/{recovery_type_id}", response_model=RecoveryTypeOut)
def update_recovery_type(
    recovery_type_id: UUID,
    payload: RecoveryTypeUpdate,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    recovery_type = _get_or_404(db, recovery_type_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(recovery_type, field, value)
    _commit(db, "l'aggiornamento del tipo di recupero")
    db.refresh(recovery_type)
    return _to_out(recovery_type, _activity_count(db, recovery_type_id))


@router.delete("/{recovery_type_id}")
def delete_recovery_type(
    recovery_type_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    recovery_type = _get_or_404(db, recovery_type_id)
    in_use = _activity_count(db, recovery_type_id)
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=f"Impossibile eliminare: {in_use} attività utilizzano questo tipo",
        )
    db.delete(recovery_type)
    _commit(db, "l'eliminazione del tipo di recupero")
    return {"success": True}
