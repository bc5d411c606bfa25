# recupero/schemas/teacher.py
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _clean_email(v: Optional[str]) -> Optional[str]:
    v = (v or "").strip().lower()
    if not v:
        return None
    if not EMAIL_RE.match(v):
        raise ValueError("Email non valida")
    return v


OptionalEmail = Annotated[Optional[str], BeforeValidator(_clean_email)]


class SchoolYearBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    start_date: date
    end_date: date
    is_active: bool


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID
    school_year_id: UUID
    minutes_weekly: float
    minutes_annual: float
    modules_annual: float
    minutes_used: float
    modules_used: float
    saldo: float
    modules_remaining: float
    import_date: datetime
    import_source: Optional[str] = None


class BudgetWithYearOut(BudgetOut):
    school_year: Optional[SchoolYearBrief] = None


class TeacherCreate(BaseModel):
    cognome: str = Field(..., min_length=1, max_length=100)
    nome: str = Field(..., min_length=1, max_length=100)
    email: OptionalEmail = None

    @field_validator("cognome", "nome")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Campo obbligatorio")
        return v


class TeacherUpdate(BaseModel):
    cognome: Optional[str] = Field(None, min_length=1, max_length=100)
    nome: Optional[str] = Field(None, min_length=1, max_length=100)
    email: OptionalEmail = None


class TeacherOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    cognome: str
    nome: str
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TeacherWithBudgetsOut(TeacherOut):
    budgets: List[BudgetWithYearOut] = Field(default_factory=list)


class TeacherBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    cognome: str
    nome: str


class BudgetWithTeacherOut(BudgetWithYearOut):
    teacher: Optional[TeacherBrief] = None


# -------- Envelope delle risposte --------
class TeacherListOut(BaseModel):
    teachers: List[TeacherWithBudgetsOut]


class TeacherEnvelope(BaseModel):
    teacher: TeacherOut


class BudgetListOut(BaseModel):
    budgets: List[BudgetWithTeacherOut]


class BudgetUpdate(BaseModel):
    """Correzione manuale del tesoretto; i moduli annui si ricavano dai minuti."""

    minutes_weekly: float = Field(..., gt=0)
    minutes_annual: float = Field(..., gt=0)
    import_source: Optional[str] = Field(None, max_length=255)


class BudgetDetailOut(BudgetWithTeacherOut):
    percentage_used: int = 0
