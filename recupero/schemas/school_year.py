# recupero/schemas/school_year.py
from __future__ import annotations

import re
from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SCHOOL_YEAR_RE = re.compile(r"^\d{4}-\d{2}$")


def _check_year_name(v: str) -> str:
    v = v.strip()
    if not SCHOOL_YEAR_RE.match(v):
        raise ValueError("Formato anno scolastico non valido. Usare YYYY-YY (es. 2024-25)")
    return v


class SchoolYearCreate(BaseModel):
    name: str = Field(..., description="Formato YYYY-YY, es. 2024-25")
    start_date: date
    end_date: date
    is_active: bool = False
    weeks_count: int = Field(30, ge=1, le=52)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _check_year_name(v)

    @model_validator(mode="after")
    def check_dates(self) -> "SchoolYearCreate":
        if self.end_date <= self.start_date:
            raise ValueError("end_date deve essere successiva a start_date")
        return self


class SchoolYearOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    start_date: date
    end_date: date
    weeks_count: int
    is_active: bool


class SchoolYearUpdate(BaseModel):
    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    weeks_count: Optional[int] = Field(None, ge=1, le=52)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_year_name(v)
