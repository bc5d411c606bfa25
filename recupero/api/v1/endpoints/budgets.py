# recupero/api/v1/endpoints/budgets.py
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from recupero.core.security import AuthUser, get_current_user
from recupero.db.session import get_db
from recupero.models.activity import RecoveryActivity
from recupero.models.budget import TeacherBudget
from recupero.schemas.filters import BudgetFilter
from recupero.schemas.teacher import BudgetDetailOut, BudgetListOut, BudgetUpdate
from recupero.services.csv_parser import compute_modules
from recupero.services.queries import budgets_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budgets", tags=["budgets"])


def _get_budget_or_404(db: Session, budget_id: UUID) -> TeacherBudget:
    budget = db.scalars(
        select(TeacherBudget)
        .options(selectinload(TeacherBudget.teacher), selectinload(TeacherBudget.school_year))
        .where(TeacherBudget.id == budget_id)
    ).first()
    if not budget:
        raise HTTPException(status_code=404, detail="Tesoretto non trovato")
    return budget


def _detail(budget: TeacherBudget) -> BudgetDetailOut:
    out = BudgetDetailOut.model_validate(budget)
    if budget.minutes_annual:
        out.percentage_used = round((budget.minutes_used or 0) / budget.minutes_annual * 100)
    return out


@router.get("", response_model=BudgetListOut)
def list_budgets(
    current: AuthUser = Depends(get_current_user),
    teacher_id: UUID | None = Query(None, alias="teacherId"),
    school_year_id: UUID | None = Query(None, alias="schoolYearId"),
    db: Session = Depends(get_db),
):
    """Tesoretti, dal più recente import; filtri opzionali per docente e anno."""
    filters = BudgetFilter(teacher_id=teacher_id, school_year_id=school_year_id)
    return {"budgets": db.scalars(budgets_query(filters)).all()}


@router.get("/{budget_id}", response_model=BudgetDetailOut)
def get_budget(
    budget_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _detail(_get_budget_or_404(db, budget_id))


@router.put("/{budget_id}", response_model=BudgetDetailOut)
def update_budget(
    budget_id: UUID,
    payload: BudgetUpdate,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Correzione manuale di minuti settimanali e tesoretto annuale.

    Il nuovo tesoretto non può scendere sotto quanto già consumato, né in
    minuti né in moduli.
    """
    budget = _get_budget_or_404(db, budget_id)
    modules_annual = compute_modules(payload.minutes_annual)

    if payload.minutes_annual < (budget.minutes_used or 0):
        raise HTTPException(
            status_code=400, detail="I minuti annuali non possono essere inferiori a quelli già utilizzati"
        )
    if modules_annual < (budget.modules_used or 0):
        raise HTTPException(
            status_code=400, detail="I moduli annuali non possono essere inferiori a quelli già utilizzati"
        )

    budget.minutes_weekly = payload.minutes_weekly
    budget.minutes_annual = payload.minutes_annual
    budget.modules_annual = modules_annual
    if payload.import_source is not None:
        budget.import_source = payload.import_source
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante l'aggiornamento del tesoretto %s", budget_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    budget = _get_budget_or_404(db, budget_id)
    logger.info("Tesoretto %s aggiornato da %s: %s minuti", budget_id, current.id, budget.minutes_annual)
    return _detail(budget)


@router.delete("/{budget_id}")
def delete_budget(
    budget_id: UUID,
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Eliminabile solo se il docente non ha attività in quell'anno."""
    budget = _get_budget_or_404(db, budget_id)
    linked = db.scalar(
        select(func.count(RecoveryActivity.id)).where(
            RecoveryActivity.teacher_id == budget.teacher_id,
            RecoveryActivity.school_year_id == budget.school_year_id,
        )
    )
    if linked:
        raise HTTPException(
            status_code=400,
            detail="Impossibile eliminare: esistono attività di recupero collegate a questo tesoretto",
        )

    db.delete(budget)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Errore DB durante l'eliminazione del tesoretto %s", budget_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("Tesoretto %s eliminato da %s", budget_id, current.id)
    return {"success": True, "message": "Tesoretto eliminato con successo"}
