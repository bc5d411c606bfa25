# recupero/services/queries.py
"""
Costruzione delle query di lista a partire dagli oggetti filtro.

Ogni funzione restituisce uno statement ``select`` (SQLAlchemy 2) che il
router esegue con ``db.scalars(...)``.
"""
from __future__ import annotations

from datetime import date

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import selectinload

from recupero.models.activity import RecoveryActivity, RecoveryType
from recupero.models.budget import TeacherBudget
from recupero.models.school_year import SchoolYear
from recupero.models.teacher import Teacher
from recupero.schemas.filters import ActivityFilter, BudgetFilter, RecoveryTypeFilter


def activities_query(filters: ActivityFilter) -> Select:
    stmt = (
        select(RecoveryActivity)
        .options(
            selectinload(RecoveryActivity.teacher),
            selectinload(RecoveryActivity.recovery_type),
        )
        .order_by(RecoveryActivity.date.desc(), RecoveryActivity.module_number.asc())
    )
    if filters.school_year_id is not None:
        stmt = stmt.where(RecoveryActivity.school_year_id == filters.school_year_id)
    if filters.teacher_id is not None:
        stmt = stmt.where(RecoveryActivity.teacher_id == filters.teacher_id)
    if filters.status is not None:
        stmt = stmt.where(RecoveryActivity.status == filters.status)
    return stmt


def budgets_query(filters: BudgetFilter) -> Select:
    stmt = (
        select(TeacherBudget)
        .options(
            selectinload(TeacherBudget.teacher),
            selectinload(TeacherBudget.school_year),
        )
        .order_by(TeacherBudget.import_date.desc())
    )
    if filters.teacher_id is not None:
        stmt = stmt.where(TeacherBudget.teacher_id == filters.teacher_id)
    if filters.school_year_id is not None:
        stmt = stmt.where(TeacherBudget.school_year_id == filters.school_year_id)
    return stmt


def teachers_with_budgets_query() -> Select:
    return (
        select(Teacher)
        .options(selectinload(Teacher.budgets).selectinload(TeacherBudget.school_year))
        .order_by(Teacher.cognome.asc(), Teacher.nome.asc())
    )


def recovery_types_query(filters: RecoveryTypeFilter) -> Select:
    """Tipologie con il numero di attività collegate: righe (RecoveryType, count)."""
    activity_count = (
        select(func.count(RecoveryActivity.id))
        .where(RecoveryActivity.recovery_type_id == RecoveryType.id)
        .correlate(RecoveryType)
        .scalar_subquery()
    )
    stmt = select(RecoveryType, activity_count.label("activity_count")).order_by(RecoveryType.created_at.desc())
    if filters.active_only:
        stmt = stmt.where(RecoveryType.is_active.is_(True))
    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        stmt = stmt.where(or_(RecoveryType.name.ilike(pattern), RecoveryType.description.ilike(pattern)))
    return stmt


def active_school_year_query() -> Select:
    return select(SchoolYear).where(SchoolYear.is_active.is_(True)).order_by(SchoolYear.start_date.desc())


def find_teacher_by_name_query(cognome: str, nome: str) -> Select:
    """Ricerca case-insensitive per (cognome, nome) normalizzati."""
    return select(Teacher).where(
        func.lower(func.trim(Teacher.cognome)) == cognome.strip().lower(),
        func.lower(func.trim(Teacher.nome)) == nome.strip().lower(),
    )


def weekly_activities_query(school_year_id, week_start: date, week_end: date) -> Select:
    """Attività dell'anno comprese nella settimana, in ordine di data e modulo."""
    return (
        select(RecoveryActivity)
        .options(
            selectinload(RecoveryActivity.teacher),
            selectinload(RecoveryActivity.recovery_type),
        )
        .where(
            RecoveryActivity.school_year_id == school_year_id,
            RecoveryActivity.date >= week_start,
            RecoveryActivity.date <= week_end,
        )
        .order_by(RecoveryActivity.date.asc(), RecoveryActivity.module_number.asc())
    )
