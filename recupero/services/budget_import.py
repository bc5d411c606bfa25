# recupero/services/budget_import.py
"""
Fase di commit dell'import tesoretti.

Ogni record valido viene scritto in una propria transazione: un errore
del database su un record viene annotato e non interrompe i successivi,
quindi i record già scritti restano scritti.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recupero.models.budget import TeacherBudget
from recupero.models.school_year import SchoolYear
from recupero.models.teacher import Teacher
from recupero.schemas.imports import ImportCounts, ImportResult, ParsedImportRecord
from recupero.services.csv_parser import compute_modules, flag_duplicates
from recupero.services.queries import find_teacher_by_name_query

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "csv"


def _find_or_create_teacher(db: Session, record: ParsedImportRecord) -> Tuple[Teacher, bool]:
    """Restituisce (docente, creato)."""
    teacher = db.scalars(find_teacher_by_name_query(record.cognome, record.nome)).first()
    if teacher is None:
        teacher = Teacher(cognome=record.cognome.strip(), nome=record.nome.strip(), email=record.email)
        db.add(teacher)
        db.flush()
        return teacher, True

    # Email aggiornata solo se il docente non ne ha già una
    if record.email and not teacher.email:
        teacher.email = record.email
    return teacher, False


def _upsert_budget(
    db: Session,
    teacher: Teacher,
    school_year: SchoolYear,
    record: ParsedImportRecord,
    import_source: str,
) -> TeacherBudget:
    now = datetime.now(timezone.utc)
    budget = db.scalars(
        select(TeacherBudget).where(
            TeacherBudget.teacher_id == teacher.id,
            TeacherBudget.school_year_id == school_year.id,
        )
    ).first()

    if budget is not None:
        # il consumato resta quello registrato dalle attività
        budget.minutes_weekly = record.minutes_weekly
        budget.minutes_annual = record.minutes_annual
        budget.modules_annual = record.modules_annual
        budget.import_date = now
        budget.import_source = import_source
        return budget

    minutes_used = max(record.minutes_annual - record.saldo, 0)
    budget = TeacherBudget(
        teacher_id=teacher.id,
        school_year_id=school_year.id,
        minutes_weekly=record.minutes_weekly,
        minutes_annual=record.minutes_annual,
        modules_annual=record.modules_annual,
        minutes_used=minutes_used,
        modules_used=compute_modules(minutes_used),
        import_date=now,
        import_source=import_source,
    )
    db.add(budget)
    return budget


def _invalid_reason(record: ParsedImportRecord) -> Optional[str]:
    if record.errors:
        return f"record non valido, ignorato ({'; '.join(record.errors)})"
    if not record.cognome.strip() or not record.nome.strip():
        return "Campi obbligatori mancanti"
    return None


def normalize_records(records: Iterable[ParsedImportRecord]) -> List[ParsedImportRecord]:
    """
    I record arrivano dal client: i moduli annui vengono ricalcolati dai
    minuti e i duplicati nel lotto vengono segnalati di nuovo.
    """
    recomputed = [
        record.model_copy(update={"modules_annual": compute_modules(record.minutes_annual)})
        for record in records
    ]
    normalized, _ = flag_duplicates(recomputed)
    return normalized


def apply_import(
    db: Session,
    records: Iterable[ParsedImportRecord],
    school_year: SchoolYear,
    import_source: Optional[str] = None,
) -> ImportResult:
    created = 0
    updated = 0
    errors: List[str] = []
    source = import_source or DEFAULT_SOURCE
    school_year_id = school_year.id

    for record in normalize_records(records):
        reason = _invalid_reason(record)
        if reason:
            errors.append(f"Riga {record.row_index}: {reason}")
            continue

        try:
            teacher, is_new = _find_or_create_teacher(db, record)
            _upsert_budget(db, teacher, school_year, record, source)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                "Import tesoretti: errore alla riga %d (%s %s, anno %s)",
                record.row_index, record.cognome, record.nome, school_year_id,
            )
            errors.append(f"Riga {record.row_index}: Errore durante l'elaborazione")
            continue

        if is_new:
            created += 1
        else:
            updated += 1

    message = f"Import completato: {created} creati, {updated} aggiornati"
    if errors:
        message += f", {len(errors)} errori"
    logger.info("%s (anno %s, fonte %s)", message, school_year_id, source)

    return ImportResult(
        success=not errors,
        message=message,
        results=ImportCounts(created=created, updated=updated, errors=errors),
    )
