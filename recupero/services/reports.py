# recupero/services/reports.py
"""
Riepiloghi dell'anno scolastico attivo: panoramica generale e avanzamento
per docente (anche in CSV, con lo stesso separatore ``;`` dell'import).
"""
from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from typing import Iterator, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from recupero.models.activity import RecoveryActivity
from recupero.models.budget import TeacherBudget
from recupero.models.school_year import SchoolYear
from recupero.models.teacher import Teacher
from recupero.schemas.report import (
    ActiveYearOut, OverviewOut, OverviewStats, TeacherProgressOut, TeacherProgressRow,
)

PROGRESS_CSV_HEADERS = ("Cognome", "Nome", "Moduli da recuperare", "Moduli recuperati", "Percentuale")


def build_overview(db: Session, school_year: SchoolYear) -> OverviewOut:
    total_teachers = db.scalar(select(func.count(Teacher.id))) or 0
    total_modules = db.scalar(
        select(func.coalesce(func.sum(TeacherBudget.modules_annual), 0))
        .where(TeacherBudget.school_year_id == school_year.id)
    ) or 0

    rows = db.execute(
        select(
            RecoveryActivity.status,
            func.count(RecoveryActivity.id),
            func.coalesce(func.sum(RecoveryActivity.modules_equivalent), 0),
        )
        .where(RecoveryActivity.school_year_id == school_year.id)
        .group_by(RecoveryActivity.status)
    ).all()
    by_status = {status: (count, float(modules or 0)) for status, count, modules in rows}
    planned_count, planned_modules = by_status.get("planned", (0, 0.0))
    completed_count, completed_modules = by_status.get("completed", (0, 0.0))

    modules_used = planned_modules + completed_modules
    stats = OverviewStats(
        total_teachers=total_teachers,
        total_modules_annual=float(total_modules),
        modules_to_plan=round(float(total_modules) - modules_used, 2),
        modules_planned=planned_modules,
        modules_completed=completed_modules,
        modules_used=modules_used,
        activities_planned=planned_count,
        activities_completed=completed_count,
        total_activities=sum(count for count, _ in by_status.values()),
    )
    return OverviewOut(
        overview=stats,
        active_year=ActiveYearOut(
            id=school_year.id,
            name=school_year.name,
            start_date=school_year.start_date,
            end_date=school_year.end_date,
        ),
    )


def build_teacher_progress(db: Session, school_year: SchoolYear) -> TeacherProgressOut:
    """Moduli da recuperare e moduli recuperati (attività completate) per ogni docente con tesoretto."""
    budgets = db.scalars(
        select(TeacherBudget)
        .join(TeacherBudget.teacher)
        .options(selectinload(TeacherBudget.teacher))
        .where(TeacherBudget.school_year_id == school_year.id)
        .order_by(Teacher.cognome.asc(), Teacher.nome.asc())
    ).all()

    completed = dict(
        db.execute(
            select(RecoveryActivity.teacher_id, func.sum(RecoveryActivity.modules_equivalent))
            .where(
                RecoveryActivity.school_year_id == school_year.id,
                RecoveryActivity.status == "completed",
            )
            .group_by(RecoveryActivity.teacher_id)
        ).all()
    )

    data: List[TeacherProgressRow] = []
    for budget in budgets:
        annual = float(budget.modules_annual or 0)
        done = float(completed.get(budget.teacher_id) or 0)
        data.append(TeacherProgressRow(
            cognome=budget.teacher.cognome,
            nome=budget.teacher.nome,
            modules_annual=annual,
            modules_completed=done,
            percentage=round(done / annual * 100, 2) if annual > 0 else 0.0,
        ))

    return TeacherProgressOut(
        school_year=school_year.name,
        generated_at=datetime.now(timezone.utc),
        data=data,
    )


def iter_progress_csv(report: TeacherProgressOut) -> Iterator[str]:
    """Righe CSV una alla volta, per StreamingResponse."""
    output = io.StringIO()
    writer = csv.writer(output, delimiter=";", lineterminator="\n")
    writer.writerow(PROGRESS_CSV_HEADERS)
    yield output.getvalue(); output.seek(0); output.truncate(0)

    for row in report.data:
        writer.writerow([
            row.cognome,
            row.nome,
            f"{row.modules_annual:.2f}",
            f"{row.modules_completed:.2f}",
            f"{row.percentage:.2f}%",
        ])
        yield output.getvalue(); output.seek(0); output.truncate(0)
