# recupero/services/activities.py
"""
Regole di pianificazione delle attività di recupero.

- il budget del docente per l'anno deve coprire i moduli dell'attività;
- stesso docente, stessa data, stesso modulo: sovrapposizione bloccante;
- stessa classe, stessa data, stesso modulo: solo avviso.
"""
from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from recupero.core.config import settings
from recupero.models.activity import RecoveryActivity, RecoveryType
from recupero.models.budget import TeacherBudget
from recupero.schemas.activity import ActivityCreate

logger = logging.getLogger(__name__)


class ActivityRuleError(ValueError):
    """Violazione di una regola di pianificazione (400)."""


class ActivityNotFound(LookupError):
    """Risorsa collegata non trovata (404)."""


def get_budget(db: Session, teacher_id: UUID, school_year_id: UUID) -> Optional[TeacherBudget]:
    return db.scalars(
        select(TeacherBudget).where(
            TeacherBudget.teacher_id == teacher_id,
            TeacherBudget.school_year_id == school_year_id,
        )
    ).first()


def create_activity(
    db: Session,
    data: ActivityCreate,
    created_by: Optional[UUID] = None,
) -> Tuple[RecoveryActivity, Optional[str], TeacherBudget]:
    """Crea l'attività e scala il budget nella stessa transazione. Restituisce (attività, avviso, budget)."""
    budget = get_budget(db, data.teacher_id, data.school_year_id)
    if budget is None:
        raise ActivityNotFound("Budget non trovato per questo anno scolastico")

    recovery_type = db.get(RecoveryType, data.recovery_type_id)
    if recovery_type is None:
        raise ActivityNotFound("Tipo di recupero non trovato")

    module_minutes = settings.MODULE_MINUTES
    duration = recovery_type.default_duration or module_minutes
    modules_equivalent = math.ceil(duration / module_minutes)

    if (budget.modules_used or 0) + modules_equivalent > (budget.modules_annual or 0):
        raise ActivityRuleError("Budget esaurito: non ci sono moduli disponibili")

    teacher_overlap = db.scalars(
        select(RecoveryActivity).where(
            RecoveryActivity.teacher_id == data.teacher_id,
            RecoveryActivity.date == data.date,
            RecoveryActivity.module_number == data.module_number,
        )
    ).first()
    if teacher_overlap is not None:
        raise ActivityRuleError(
            f"Sovrapposizione docente: il modulo è già occupato ({teacher_overlap.title})"
        )

    warning = None
    class_overlap = db.scalars(
        select(RecoveryActivity)
        .options(selectinload(RecoveryActivity.teacher))
        .where(
            RecoveryActivity.class_name == data.class_name,
            RecoveryActivity.date == data.date,
            RecoveryActivity.module_number == data.module_number,
        )
    ).first()
    if class_overlap is not None and class_overlap.teacher is not None:
        warning = (
            f"Attenzione: la classe {data.class_name} ha già un'attività in questo modulo "
            f"con {class_overlap.teacher.nome} {class_overlap.teacher.cognome}"
        )

    activity = RecoveryActivity(
        teacher_id=data.teacher_id,
        school_year_id=data.school_year_id,
        recovery_type_id=data.recovery_type_id,
        date=data.date,
        module_number=data.module_number,
        class_name=data.class_name,
        title=f"{recovery_type.name} - {data.class_name} - Modulo {data.module_number}",
        description=data.description,
        co_teacher_name=data.co_teacher_name,
        duration_minutes=duration,
        modules_equivalent=modules_equivalent,
        status="planned",
        created_by=created_by,
    )
    db.add(activity)
    budget.modules_used = (budget.modules_used or 0) + modules_equivalent
    budget.minutes_used = (budget.minutes_used or 0) + duration
    db.commit()
    db.refresh(activity)
    db.refresh(budget)
    return activity, warning, budget


def delete_activity(db: Session, activity: RecoveryActivity) -> Optional[str]:
    """Elimina un'attività pianificata restituendo al budget moduli e minuti. Ritorna un eventuale avviso."""
    if activity.status == "completed":
        raise ActivityRuleError("Impossibile eliminare un'attività completata")

    budget = get_budget(db, activity.teacher_id, activity.school_year_id)
    db.delete(activity)

    warning = None
    if budget is None:
        logger.warning("Budget non trovato per il rimborso dell'attività %s", activity.id)
        warning = "Attività eliminata ma budget non aggiornato"
    else:
        budget.modules_used = max(0, (budget.modules_used or 0) - (activity.modules_equivalent or 0))
        budget.minutes_used = max(0, (budget.minutes_used or 0) - (activity.duration_minutes or 0))
    db.commit()
    return warning


def week_bounds(week_start: Optional[date] = None) -> Tuple[date, date]:
    """Dal giorno indicato (default: lunedì della settimana corrente) ai sei giorni successivi."""
    if week_start is None:
        today = date.today()
        week_start = today - timedelta(days=today.weekday())
    return week_start, week_start + timedelta(days=6)
