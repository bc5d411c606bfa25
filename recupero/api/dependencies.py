# recupero/api/dependencies.py
from __future__ import annotations

from uuid import UUID

from fastapi import File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from recupero.models.school_year import SchoolYear
from recupero.services.queries import active_school_year_query

CSV_CONTENT_TYPES = {
    "text/csv",
    "text/plain",
    "application/csv",
    "application/vnd.ms-excel",
}


def get_csv_upload(file: UploadFile = File(..., description="CSV tesoretti (separatore ; o ,)")) -> UploadFile:
    """
    Accetta il file solo se è un CSV per estensione o MIME type.
    """
    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").split(";")[0].strip().lower()

    if not filename.endswith(".csv") and content_type not in CSV_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Sono accettati solo file CSV",
        )
    return file


def resolve_school_year(db: Session, school_year_id: UUID | None) -> SchoolYear:
    """Anno indicato, oppure l'anno attivo; 404 se non esiste."""
    if school_year_id is not None:
        school_year = db.get(SchoolYear, school_year_id)
        if school_year is None:
            raise HTTPException(status_code=404, detail="Anno scolastico non trovato")
        return school_year

    school_year = db.scalars(active_school_year_query()).first()
    if school_year is None:
        raise HTTPException(status_code=404, detail="Nessun anno scolastico attivo trovato")
    return school_year
