# recupero/schemas/report.py
from __future__ import annotations

from datetime import date, datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel


class OverviewStats(BaseModel):
    total_teachers: int = 0
    total_modules_annual: float = 0
    modules_to_plan: float = 0
    modules_planned: float = 0
    modules_completed: float = 0
    modules_used: float = 0
    activities_planned: int = 0
    activities_completed: int = 0
    total_activities: int = 0


class ActiveYearOut(BaseModel):
    id: UUID
    name: str
    start_date: date
    end_date: date


class OverviewOut(BaseModel):
    overview: OverviewStats
    active_year: ActiveYearOut


class TeacherProgressRow(BaseModel):
    cognome: str
    nome: str
    modules_annual: float
    modules_completed: float
    percentage: float


class TeacherProgressOut(BaseModel):
    school_year: str
    generated_at: datetime
    data: List[TeacherProgressRow]
