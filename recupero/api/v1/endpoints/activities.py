# recupero/api/v1/endpoints/activities.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recupero.api.dependencies import resolve_school_year
from recupero.core.security import AuthUser, get_current_user
from recupero.db.session import get_db
from recupero.models.activity import RecoveryActivity
from recupero.schemas.activity import (
    ActivityCreate, ActivityCreatedOut, ActivityOut, ActivityStatusIn, WeeklyActivitiesOut,
)
from recupero.schemas.filters import ActivityFilter
from recupero.services.activities import (
    ActivityNotFound, ActivityRuleError, create_activity, delete_activity, week_bounds,
)
from recupero.services.queries import activities_query, weekly_activities_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activities", tags=["activities"])


def _get_or_404(db: Session, activity_id: UUID) -> RecoveryActivity:
    activity = db.get(RecoveryActivity, activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Attività non trovata")
    return activity


@router.get("", response_model=List[ActivityOut])
def list_activities(
    current: AuthUser = Depends(get_current_user),
    school_year_id: UUID | None = Query(None, alias="schoolYearId"),
    teacher_id: UUID | None = Query(None, alias="teacherId"),
    status_: Literal["planned", "completed"] | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    filters = ActivityFilter(school_year_id=school_year_id, teacher_id=teacher_id, status=status_)
    return db.scalars(activities_query(filters)).all()


@router.get("/weekly", response_model=WeeklyActivitiesOut)
def weekly_activities(
    current: AuthUser = Depends(get_current_user),
    week_start: date | None = Query(None, alias="weekStart"),
    school_year_id: UUID | None = Query(None, alias="schoolYearId"),
    db: Session = Depends(get_db),
):
    """Vista settimanale: da weekStart (default il lunedì corrente) per sette giorni."""
    school_year = resolve_school_year(db, school_year_id)
    start, end = week_bounds(week_start)
    activities = db.scalars(weekly_activities_query(school_year.id, start, end)).all()
    return {"activities": activities, "week_start": start, "week_end": end}


@router.post("", response_model=ActivityCreatedOut, status_code=status.HTTP_201_CREATED)
def schedule_activity(
    payload: ActivityCreate,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Pianifica un'attività di recupero e scala i moduli dal tesoretto.

    400 se il budget non basta o se il docente ha già un'attività nello
    stesso modulo; una sovrapposizione di classe produce solo un avviso.
    """
    try:
        activity, warning, budget = create_activity(db, payload, created_by=current.id)
    except ActivityNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ActivityRuleError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante la creazione dell'attività")
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("Attività %s pianificata (%s)", activity.id, activity.title)
    return {
        "activity": activity,
        "warning": warning,
        "budget": {
            "modules_used": budget.modules_used,
            "modules_remaining": budget.modules_remaining,
        },
    }


@router.patch("/{activity_id}", response_model=ActivityOut)
def update_activity_status(
    activity_id: UUID,
    payload: ActivityStatusIn,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    activity = _get_or_404(db, activity_id)
    activity.status = payload.status
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante l'aggiornamento dell'attività %s", activity_id)
        raise HTTPException(status_code=500, detail="Internal server error")
    db.refresh(activity)
    return activity


@router.delete("/{activity_id}")
def remove_activity(
    activity_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Elimina un'attività pianificata e restituisce i moduli al tesoretto."""
    activity = _get_or_404(db, activity_id)
    try:
        warning = delete_activity(db, activity)
    except ActivityRuleError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante l'eliminazione dell'attività %s", activity_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    body = {"success": True}
    if warning:
        body["warning"] = warning
    return body
