# recupero/services/csv_parser.py
"""
Parsing e validazione del CSV dei tesoretti.

Formato atteso (export della segreteria, separatore ``;``)::

    Docente;Minuti/Settimana;Tesoretto Annuale (min);Moduli Annui (50 min);Saldo (min)
    Rossi Mario;1000;36000;720;36000

Le colonne si riconoscono dall'intestazione, in qualsiasi ordine: ogni
intestazione viene normalizzata (minuscolo, solo lettere e cifre) e una
colonna logica la riconosce se contiene tutte le sue parole chiave
(``FIELD_KEYWORDS``). Docente, minuti/settimana e tesoretto sono
obbligatori; moduli annui, saldo ed email sono facoltativi e, se assenti,
vengono calcolati.

Il nome del docente è "Cognome Nome" (primo token = cognome) oppure
"Cognome, Nome" (divisione sulla prima virgola).
"""
from __future__ import annotations

import csv
import io
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence, Tuple

from recupero.core.config import settings
from recupero.schemas.imports import ColumnMapping, ImportPreview, ImportStats, ParsedImportRecord
from recupero.schemas.teacher import EMAIL_RE

logger = logging.getLogger(__name__)

# L'ordine conta: un'intestazione viene assegnata al primo campo che la riconosce
# ("Email docente" deve finire su email, non su docente).
FIELD_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("email", ("mail",)),
    ("docente", ("docente",)),
    ("minuti_settimana", ("minuti", "settimana")),
    ("tesoretto_annuale", ("tesoretto", "annual")),
    ("moduli_annui", ("moduli", "annu")),
    ("saldo", ("saldo",)),
)
REQUIRED_FIELDS = ("docente", "minuti_settimana", "tesoretto_annuale")

# Intestazioni canoniche dell'export, usate anche nei messaggi di errore
CSV_HEADERS = {
    "docente": "Docente",
    "minuti_settimana": "Minuti/Settimana",
    "tesoretto_annuale": "Tesoretto Annuale (min)",
    "moduli_annui": "Moduli Annui (50 min)",
    "saldo": "Saldo (min)",
    "email": "Email",
}

# File senza intestazione: ordine dell'export
DEFAULT_ORDER = ("docente", "minuti_settimana", "tesoretto_annuale", "moduli_annui", "saldo", "email")

EMPTY_FILE = "File CSV vuoto o formato non valido"
DUPLICATE = "Docente duplicato nel file (già presente alla riga {first})"

# "36.000", "1.234.567": punto come separatore delle migliaia (export italiano)
DOT_THOUSANDS_RE = re.compile(r"^[+-]?[1-9]\d{0,2}(\.\d{3})+$")


class ImportMappingError(ValueError):
    """Colonne obbligatorie non trovate: errore globale, nessuna riga viene analizzata."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Colonne mancanti: {', '.join(CSV_HEADERS[f] for f in self.missing)}")


# ----------------------- lettura -----------------------

def decode_upload(raw: bytes) -> str:
    """UTF-8 (anche con BOM), con fallback latin-1 per gli export di Excel."""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def detect_delimiter(text: str, candidates: str | None = None) -> str:
    candidates = candidates or settings.CSV_DELIMITERS
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    counts = {d: first_line.count(d) for d in candidates}
    best = max(counts, key=counts.get) if counts else ";"
    return best if counts.get(best) else candidates[0]


def _is_blank(row: Sequence[str]) -> bool:
    return all(not (cell or "").strip() for cell in row)


def read_rows(text: str) -> List[List[str]]:
    """Righe non vuote del file, celle già ripulite dagli spazi."""
    text = text.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text), delimiter=detect_delimiter(text))
    return [[(cell or "").strip() for cell in row] for row in reader if not _is_blank(row)]


# ----------------------- mappatura colonne -----------------------

def _norm_header(header: str) -> str:
    return "".join(ch for ch in (header or "").lower() if ch.isalnum())


def resolve_column_mapping(headers: Sequence[str]) -> ColumnMapping:
    found: dict[str, int] = {}
    for index, header in enumerate(headers):
        normalized = _norm_header(header)
        if not normalized:
            continue
        for field, keywords in FIELD_KEYWORDS:
            if field in found:
                continue
            if all(k in normalized for k in keywords):
                found[field] = index
                break

    missing = [f for f in REQUIRED_FIELDS if f not in found]
    if missing:
        raise ImportMappingError(missing)
    return ColumnMapping(**found)


def default_column_mapping(width: int) -> ColumnMapping:
    """Mappatura posizionale per i file senza intestazione."""
    found = {field: index for index, field in enumerate(DEFAULT_ORDER) if index < width}
    missing = [f for f in REQUIRED_FIELDS if f not in found]
    if missing:
        raise ImportMappingError(missing)
    return ColumnMapping(**found)


# ----------------------- valori -----------------------

def parse_number(raw: str) -> float:
    """
    Numero con separatore decimale italiano o inglese: ``1000``, ``12,5``,
    ``12.5``, ``1.234,5``, ``1,234.5``. Se compaiono entrambi i separatori,
    l'ultimo è quello decimale. Un punto seguito da gruppi di tre cifre
    (``36.000``) separa le migliaia.
    """
    s = (raw or "").strip().replace(" ", "").replace("\u00a0", "")
    if not s:
        raise ValueError("valore vuoto")
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")
    elif DOT_THOUSANDS_RE.match(s):
        s = s.replace(".", "")
    try:
        value = Decimal(s)
    except InvalidOperation:
        raise ValueError(f"non numerico: {raw!r}")
    if not value.is_finite():
        raise ValueError(f"non numerico: {raw!r}")
    return float(value)


def compute_modules(minutes: float, module_minutes: int | None = None) -> float:
    """Moduli equivalenti ai minuti, arrotondati a 2 decimali."""
    return round(minutes / (module_minutes or settings.MODULE_MINUTES), 2)


def split_docente(value: str) -> Tuple[str, str]:
    """'Rossi Mario' / 'Rossi, Mario' -> ('Rossi', 'Mario')."""
    value = " ".join((value or "").split())
    if "," in value:
        cognome, _, nome = value.partition(",")
        cognome, nome = cognome.strip(), nome.strip()
    else:
        cognome, _, nome = value.partition(" ")
    if not cognome or not nome:
        raise ValueError("Formato nome non valido (atteso: Cognome Nome)")
    return cognome, nome


def _cell(row: Sequence[str], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index]


def _parse_amount(raw: str, label: str, errors: List[str]) -> Optional[float]:
    if not raw:
        errors.append(f"{label} mancante")
        return None
    try:
        value = parse_number(raw)
    except ValueError:
        errors.append(f"{label} non valido: {raw!r}")
        return None
    if value < 0:
        errors.append(f"{label} non può essere negativo")
        return None
    return value


# ----------------------- righe -----------------------

def parse_row(
    row: Sequence[str],
    mapping: ColumnMapping,
    row_index: int,
    module_minutes: int | None = None,
) -> ParsedImportRecord:
    """
    Valida una riga senza interrompersi al primo errore: tutti i campi
    vengono analizzati, così la lista degli errori della riga è completa.
    """
    errors: List[str] = []
    warnings: List[str] = []

    cognome, nome = "", ""
    docente = _cell(row, mapping.docente)
    if not docente:
        errors.append("Nome docente mancante")
    else:
        try:
            cognome, nome = split_docente(docente)
        except ValueError as exc:
            cognome = docente
            errors.append(str(exc))

    minutes_weekly = _parse_amount(_cell(row, mapping.minuti_settimana), "Minuti/settimana", errors)
    minutes_annual = _parse_amount(_cell(row, mapping.tesoretto_annuale), "Tesoretto annuale", errors)

    modules_annual = None
    if minutes_annual is not None:
        modules_annual = compute_modules(minutes_annual, module_minutes)

    moduli_raw = _cell(row, mapping.moduli_annui)
    if moduli_raw:
        supplied = _parse_amount(moduli_raw, "Moduli annui", errors)
        if supplied is not None and modules_annual is not None and abs(supplied - modules_annual) > 1:
            warnings.append(
                f"Moduli annui ({supplied:g}) non coerenti con i minuti (attesi ~{modules_annual:g})"
            )

    # Senza colonna saldo: tesoretto meno il consumato, che all'import è zero
    saldo_raw = _cell(row, mapping.saldo)
    if saldo_raw:
        saldo = _parse_amount(saldo_raw, "Saldo", errors)
    else:
        saldo = minutes_annual
    if saldo is not None and minutes_annual is not None and saldo != minutes_annual:
        warnings.append(
            f"Saldo ({saldo:g}) diverso dal tesoretto annuale ({minutes_annual:g}): possibile utilizzo precedente"
        )

    email = _cell(row, mapping.email).lower() or None
    if email and not EMAIL_RE.match(email):
        errors.append(f"Email non valida: {email!r}")

    return ParsedImportRecord(
        cognome=cognome,
        nome=nome,
        email=email,
        minutes_weekly=minutes_weekly or 0,
        minutes_annual=minutes_annual or 0,
        modules_annual=modules_annual or 0,
        saldo=saldo or 0,
        row_index=row_index,
        errors=errors,
        warnings=warnings,
    )


def flag_duplicates(records: Sequence[ParsedImportRecord]) -> Tuple[List[ParsedImportRecord], int]:
    """
    Segna come errore ogni occorrenza successiva alla prima dello stesso
    docente (cognome, nome normalizzati). Restituisce (records, duplicati).
    """
    first_seen: dict[Tuple[str, str], int] = {}
    out: List[ParsedImportRecord] = []
    duplicates = 0
    for record in records:
        if not record.cognome or not record.nome:
            out.append(record)
            continue
        key = (record.cognome.strip().casefold(), record.nome.strip().casefold())
        if key in first_seen:
            duplicates += 1
            message = DUPLICATE.format(first=first_seen[key])
            if message not in record.errors:
                record = record.model_copy(update={"errors": [*record.errors, message]})
        else:
            first_seen[key] = record.row_index
        out.append(record)
    return out, duplicates


# ----------------------- anteprima -----------------------

def build_preview(
    text: str,
    has_header: bool = True,
    module_minutes: int | None = None,
) -> ImportPreview:
    """Anteprima completa dell'import; non tocca il database."""
    try:
        rows = read_rows(text)
    except csv.Error as exc:
        logger.warning("CSV illeggibile: %s", exc)
        return ImportPreview(errors=[f"Errore nel parsing del CSV: {exc}"])

    if has_header:
        header, data = (rows[0], rows[1:]) if rows else ([], [])
    else:
        header, data = [], rows

    if not data:
        return ImportPreview(errors=[EMPTY_FILE])

    try:
        if has_header:
            mapping = resolve_column_mapping(header)
        else:
            mapping = default_column_mapping(max(len(r) for r in data))
    except ImportMappingError as exc:
        return ImportPreview(
            stats=ImportStats(total_rows=len(data), error_rows=len(data)),
            errors=[str(exc)],
        )

    parsed = [parse_row(row, mapping, index, module_minutes) for index, row in enumerate(data, start=1)]
    records, duplicates = flag_duplicates(parsed)

    valid = sum(1 for r in records if r.is_valid)
    stats = ImportStats(
        total_rows=len(records),
        valid_rows=valid,
        error_rows=len(records) - valid,
        duplicates=duplicates,
    )
    logger.info(
        "Anteprima import: %d righe, %d valide, %d con errori, %d duplicati",
        stats.total_rows, stats.valid_rows, stats.error_rows, stats.duplicates,
    )
    return ImportPreview(records=records, stats=stats, column_mapping=mapping)
