# recupero/api/v1/endpoints/school_years.py
from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from recupero.core.security import AuthUser, get_current_user
from recupero.db.session import get_db
from recupero.models.activity import RecoveryActivity
from recupero.models.budget import TeacherBudget
from recupero.models.school_year import SchoolYear
from recupero.schemas.school_year import SchoolYearCreate, SchoolYearOut, SchoolYearUpdate
from recupero.services.queries import active_school_year_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/school-years", tags=["school-years"])


@router.get("", response_model=List[SchoolYearOut])
def list_school_years(
    current: AuthUser = Depends(get_current_user),
    active_only: bool = Query(False, alias="activeOnly"),
    db: Session = Depends(get_db),
):
    stmt = select(SchoolYear).order_by(SchoolYear.start_date.desc())
    if active_only:
        stmt = stmt.where(SchoolYear.is_active.is_(True))
    return db.scalars(stmt).all()


@router.get("/active", response_model=SchoolYearOut)
def get_active_school_year(
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    school_year = db.scalars(active_school_year_query()).first()
    if not school_year:
        raise HTTPException(status_code=404, detail="Nessun anno scolastico attivo trovato")
    return school_year


@router.post("", response_model=SchoolYearOut, status_code=status.HTTP_201_CREATED)
def create_school_year(
    payload: SchoolYearCreate,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Un solo anno attivo: attivarne uno disattiva tutti gli altri."""
    try:
        if payload.is_active:
            db.execute(update(SchoolYear).where(SchoolYear.is_active.is_(True)).values(is_active=False))
        school_year = SchoolYear(**payload.model_dump())
        db.add(school_year)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Anno scolastico {payload.name} già esistente")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante la creazione dell'anno %s", payload.name)
        raise HTTPException(status_code=500, detail="Internal server error")

    db.refresh(school_year)
    logger.info("Anno scolastico %s creato (attivo=%s)", school_year.name, school_year.is_active)
    return school_year


def _get_school_year_or_404(db: Session, school_year_id: UUID) -> SchoolYear:
    school_year = db.get(SchoolYear, school_year_id)
    if not school_year:
        raise HTTPException(status_code=404, detail="Anno scolastico non trovato")
    return school_year


@router.get("/{school_year_id}", response_model=SchoolYearOut)
def get_school_year(
    school_year_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _get_school_year_or_404(db, school_year_id)


@router.put("/{school_year_id}", response_model=SchoolYearOut)
def update_school_year(
    school_year_id: UUID,
    payload: SchoolYearUpdate,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    school_year = _get_school_year_or_404(db, school_year_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    # le date si confrontano dopo l'unione con i valori salvati
    start = changes.get("start_date", school_year.start_date)
    end = changes.get("end_date", school_year.end_date)
    if end <= start:
        raise HTTPException(status_code=400, detail="end_date deve essere successiva a start_date")

    try:
        if changes.get("is_active"):
            db.execute(
                update(SchoolYear)
                .where(SchoolYear.is_active.is_(True), SchoolYear.id != school_year_id)
                .values(is_active=False)
            )
        for field, value in changes.items():
            setattr(school_year, field, value)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Anno scolastico {changes.get('name')} già esistente")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante l'aggiornamento dell'anno %s", school_year_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    db.refresh(school_year)
    logger.info("Anno scolastico %s aggiornato (attivo=%s)", school_year.name, school_year.is_active)
    return school_year


@router.delete("/{school_year_id}")
def delete_school_year(
    school_year_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Un anno con tesoretti o attività non si elimina."""
    school_year = _get_school_year_or_404(db, school_year_id)
    budgets = db.scalar(select(func.count(TeacherBudget.id)).where(TeacherBudget.school_year_id == school_year_id))
    activities = db.scalar(
        select(func.count(RecoveryActivity.id)).where(RecoveryActivity.school_year_id == school_year_id)
    )
    if budgets or activities:
        raise HTTPException(
            status_code=400,
            detail="Impossibile eliminare: esistono tesoretti o attività collegati a questo anno scolastico",
        )

    db.delete(school_year)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante l'eliminazione dell'anno %s", school_year_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("Anno scolastico %s eliminato da %s", school_year.name, current.id)
    return {"success": True}
