# recupero/api/v1/endpoints/teachers.py
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from recupero.core.security import AuthUser, get_current_user
from recupero.db.session import get_db
from recupero.models.budget import TeacherBudget
from recupero.models.teacher import Teacher
from recupero.schemas.teacher import (
    TeacherCreate, TeacherEnvelope, TeacherListOut, TeacherUpdate, TeacherWithBudgetsOut,
)
from recupero.services.queries import teachers_with_budgets_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teachers", tags=["teachers"])

EMAIL_IN_USE = "Email già associata a un altro docente"


def _get_teacher_or_404(db: Session, teacher_id: UUID) -> Teacher:
    teacher = db.scalars(
        select(Teacher)
        .options(selectinload(Teacher.budgets).selectinload(TeacherBudget.school_year))
        .where(Teacher.id == teacher_id)
    ).first()
    if not teacher:
        raise HTTPException(status_code=404, detail="Docente non trovato")
    return teacher


def _commit(db: Session, action: str) -> None:
    """Commit con gli errori del DB tradotti in 409/500."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_IN_USE)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante %s", action)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=TeacherListOut)
def list_teachers(
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Docenti in ordine di cognome e nome, con lo storico dei tesoretti."""
    teachers = db.scalars(teachers_with_budgets_query()).all()
    return {"teachers": teachers}


@router.post("", response_model=TeacherEnvelope, status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    teacher = Teacher(cognome=payload.cognome, nome=payload.nome, email=payload.email)
    db.add(teacher)
    _commit(db, "la creazione del docente")
    db.refresh(teacher)
    logger.info("Docente creato: %s %s (%s) da %s", teacher.cognome, teacher.nome, teacher.id, current.id)
    return {"teacher": teacher}


@router.get("/{teacher_id}", response_model=TeacherWithBudgetsOut)
def get_teacher(
    teacher_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _get_teacher_or_404(db, teacher_id)


@router.put("/{teacher_id}", response_model=TeacherWithBudgetsOut)
def update_teacher(
    teacher_id: UUID,
    payload: TeacherUpdate,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    teacher = _get_teacher_or_404(db, teacher_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in ("cognome", "nome") and not (value or "").strip():
            raise HTTPException(status_code=400, detail=f"{field} non può essere vuoto")
        setattr(teacher, field, value.strip() if isinstance(value, str) else value)
    _commit(db, "l'aggiornamento del docente")
    return _get_teacher_or_404(db, teacher_id)


@router.delete("/{teacher_id}")
def delete_teacher(
    teacher_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Elimina il docente con i suoi tesoretti e le sue attività."""
    teacher = _get_teacher_or_404(db, teacher_id)
    db.delete(teacher)
    _commit(db, "l'eliminazione del docente")
    logger.info("Docente eliminato: %s da %s", teacher_id, current.id)
    return {"success": True}
