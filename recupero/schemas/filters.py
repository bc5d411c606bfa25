# recupero/schemas/filters.py
from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class ActivityFilter(BaseModel):
    """Filtri opzionali di GET /activities: si applicano solo quelli valorizzati."""

    school_year_id: Optional[UUID] = None
    teacher_id: Optional[UUID] = None
    status: Optional[Literal["planned", "completed"]] = None


class BudgetFilter(BaseModel):
    teacher_id: Optional[UUID] = None
    school_year_id: Optional[UUID] = None


class RecoveryTypeFilter(BaseModel):
    active_only: bool = False
    search: Optional[str] = None
