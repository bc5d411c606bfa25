# recupero/schemas/activity.py
from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

ActivityStatus = Literal["planned", "completed"]


# -------- Tipologie di recupero --------
class RecoveryTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    color: str = Field(..., pattern=HEX_COLOR)
    default_duration: Optional[int] = Field(None, ge=1, le=300)
    requires_approval: bool = False
    is_active: bool = True


class RecoveryTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    default_duration: Optional[int] = Field(None, ge=1, le=300)
    requires_approval: Optional[bool] = None
    is_active: Optional[bool] = None


class RecoveryTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    color: str
    default_duration: Optional[int] = None
    requires_approval: bool
    is_active: bool
    created_at: dt.datetime
    activity_count: int = 0


class RecoveryTypeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: str


# -------- Attività --------
class TeacherName(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cognome: str
    nome: str


class ActivityCreate(BaseModel):
    teacher_id: UUID
    school_year_id: UUID
    recovery_type_id: UUID
    date: dt.date
    module_number: int = Field(..., ge=1, le=12)
    class_name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    co_teacher_name: Optional[str] = Field(None, max_length=200)


class ActivityStatusIn(BaseModel):
    status: ActivityStatus


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID
    school_year_id: UUID
    recovery_type_id: UUID
    date: dt.date
    module_number: int
    class_name: str
    title: str
    description: Optional[str] = None
    co_teacher_name: Optional[str] = None
    duration_minutes: int
    modules_equivalent: float
    status: str
    created_at: dt.datetime
    updated_at: dt.datetime
    teacher: Optional[TeacherName] = None
    recovery_type: Optional[RecoveryTypeBrief] = None


class BudgetSnapshot(BaseModel):
    modules_used: float
    modules_remaining: float


class ActivityCreatedOut(BaseModel):
    activity: ActivityOut
    warning: Optional[str] = None
    budget: BudgetSnapshot


class WeeklyActivitiesOut(BaseModel):
    activities: List[ActivityOut]
    week_start: dt.date
    week_end: dt.date
