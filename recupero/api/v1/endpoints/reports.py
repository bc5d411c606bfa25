# recupero/api/v1/endpoints/reports.py
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from recupero.api.dependencies import resolve_school_year
from recupero.core.security import AuthUser, get_current_user
from recupero.db.session import get_db
from recupero.schemas.report import OverviewOut, TeacherProgressOut
from recupero.services.reports import build_overview, build_teacher_progress, iter_progress_csv

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/overview", response_model=OverviewOut)
def overview(
    current: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Totali dell'anno attivo: docenti, moduli da pianificare, pianificati e svolti."""
    return build_overview(db, resolve_school_year(db, None))


@router.get("/teachers", response_model=TeacherProgressOut)
def teacher_progress(
    current: AuthUser = Depends(get_current_user),
    school_year_id: UUID | None = Query(None, alias="schoolYearId"),
    db: Session = Depends(get_db),
):
    return build_teacher_progress(db, resolve_school_year(db, school_year_id))


@router.get("/teachers/export")
def export_teacher_progress(
    current: AuthUser = Depends(get_current_user),
    school_year_id: UUID | None = Query(None, alias="schoolYearId"),
    db: Session = Depends(get_db),
):
    school_year = resolve_school_year(db, school_year_id)
    report = build_teacher_progress(db, school_year)
    filename = f"recuperi_docenti_{school_year.name}.csv"
    return StreamingResponse(iter_progress_csv(report), media_type="text/csv",
                             headers={"Content-Disposition": f'attachment; filename="{filename}"'})
