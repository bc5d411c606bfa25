# recupero/schemas/imports.py
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # JSON in camelCase (minutiSettimana, rowIndex, ...), attributi Python in snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColumnMapping(CamelModel):
    """Indice (0-based) di ogni colonna logica nel file; None = colonna assente."""

    docente: int
    minuti_settimana: int
    tesoretto_annuale: int
    moduli_annui: Optional[int] = None
    saldo: Optional[int] = None
    email: Optional[int] = None


class ParsedImportRecord(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    cognome: str
    nome: str
    email: Optional[str] = None
    minutes_weekly: float = Field(0, ge=0)
    minutes_annual: float = Field(0, ge=0)
    modules_annual: float = Field(0, ge=0)
    saldo: float = Field(0, ge=0)
    row_index: int = Field(..., ge=1, description="Numero di riga (1-based, intestazione esclusa)")
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ImportStats(CamelModel):
    total_rows: int = 0
    valid_rows: int = 0
    error_rows: int = 0
    duplicates: int = 0


class ImportPreview(CamelModel):
    records: List[ParsedImportRecord] = Field(default_factory=list)
    stats: ImportStats = Field(default_factory=ImportStats)
    errors: List[str] = Field(default_factory=list)
    column_mapping: Optional[ColumnMapping] = None


class ImportCommitIn(CamelModel):
    school_year_id: Optional[UUID] = Field(None, description="Anno scolastico; default = anno attivo")
    records: List[ParsedImportRecord] = Field(..., min_length=1)
    import_source: Optional[str] = Field(None, max_length=255)


class ImportCounts(CamelModel):
    created: int = 0
    updated: int = 0
    errors: List[str] = Field(default_factory=list)


class ImportResult(CamelModel):
    success: bool
    message: str
    results: ImportCounts
