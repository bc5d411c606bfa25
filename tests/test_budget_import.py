"""
Test della fase di commit dell'import tesoretti
"""
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from recupero.models.budget import TeacherBudget
from recupero.models.teacher import Teacher
from recupero.schemas.imports import ParsedImportRecord
from recupero.services import budget_import
from recupero.services.budget_import import apply_import


def make_record(cognome, nome, row_index, annual=36000.0, saldo=None, **extra):
    return ParsedImportRecord(
        cognome=cognome,
        nome=nome,
        minutes_weekly=1000,
        minutes_annual=annual,
        modules_annual=round(annual / 50, 2),
        saldo=annual if saldo is None else saldo,
        row_index=row_index,
        **extra,
    )


def test_creates_teachers_and_budgets(db_session, school_year):
    records = [make_record("Rossi", "Mario", 1), make_record("Bianchi", "Anna", 2, annual=18000)]

    result = apply_import(db_session, records, school_year)

    assert result.success is True
    assert result.results.created == 2
    assert result.results.updated == 0
    assert result.message == "Import completato: 2 creati, 0 aggiornati"

    budgets = db_session.scalars(select(TeacherBudget)).all()
    assert len(budgets) == 2
    assert {b.import_source for b in budgets} == {"csv"}
    assert {b.modules_annual for b in budgets} == {720.0, 360.0}


def test_existing_teacher_is_updated_case_insensitive(db_session, school_year, teacher):
    result = apply_import(db_session, [make_record("ROSSI", " mario ", 1)], school_year, "tesoretti.csv")

    assert result.results.created == 0
    assert result.results.updated == 1
    assert db_session.scalar(select(Teacher.id).where(Teacher.cognome == "ROSSI")) is None

    budget = db_session.scalars(select(TeacherBudget).where(TeacherBudget.teacher_id == teacher.id)).one()
    assert budget.import_source == "tesoretti.csv"


def test_reimport_keeps_usage(db_session, school_year, budget):
    budget.modules_used = 1
    budget.minutes_used = 50
    db_session.commit()

    apply_import(db_session, [make_record("Rossi", "Mario", 1, annual=500)], school_year)

    db_session.expire_all()
    refreshed = db_session.get(TeacherBudget, budget.id)
    assert refreshed.minutes_annual == 500
    assert refreshed.modules_annual == 10
    assert refreshed.modules_used == 1
    assert refreshed.minutes_used == 50


def test_new_budget_usage_from_saldo(db_session, school_year):
    apply_import(db_session, [make_record("Verdi", "Luca", 1, annual=1000, saldo=900)], school_year)

    budget = db_session.scalars(select(TeacherBudget)).one()
    assert budget.minutes_used == 100
    assert budget.modules_used == 2


def test_email_only_filled_when_missing(db_session, school_year, teacher):
    apply_import(db_session, [make_record("Rossi", "Mario", 1, email="altro@scuola.it")], school_year)
    db_session.refresh(teacher)
    assert teacher.email == "mario.rossi@scuola.it"

    apply_import(db_session, [make_record("Neri", "Anna", 1, email="anna.neri@scuola.it")], school_year)
    neri = db_session.scalars(select(Teacher).where(Teacher.cognome == "Neri")).one()
    assert neri.email == "anna.neri@scuola.it"


def test_invalid_records_are_skipped(db_session, school_year):
    records = [
        make_record("Rossi", "Mario", 1),
        make_record("Verdi", "", 2, errors=["Formato nome non valido (atteso: Cognome Nome)"]),
    ]

    result = apply_import(db_session, records, school_year)

    assert result.success is False
    assert result.results.created == 1
    assert len(result.results.errors) == 1
    assert result.results.errors[0].startswith("Riga 2: record non valido, ignorato")
    assert db_session.scalar(select(Teacher).where(Teacher.cognome == "Verdi")) is None


def test_storage_failure_on_one_record_does_not_stop_the_batch(db_session, school_year, monkeypatch):
    real_upsert = budget_import._upsert_budget

    def failing_upsert(db, teacher, year, record, source):
        if record.row_index == 2:
            raise OperationalError("INSERT INTO teacher_budgets", {}, Exception("disk I/O error"))
        return real_upsert(db, teacher, year, record, source)

    monkeypatch.setattr(budget_import, "_upsert_budget", failing_upsert)

    records = [
        make_record("Rossi", "Mario", 1),
        make_record("Bianchi", "Anna", 2),
        make_record("Verdi", "Luca", 3),
    ]
    result = apply_import(db_session, records, school_year)

    assert result.success is False
    assert result.results.created == 2
    assert result.results.updated == 0
    assert result.results.errors == ["Riga 2: Errore durante l'elaborazione"]
    assert result.message == "Import completato: 2 creati, 0 aggiornati, 1 errori"

    cognomi = set(db_session.scalars(select(Teacher.cognome)).all())
    assert cognomi == {"Rossi", "Verdi"}
    assert len(db_session.scalars(select(TeacherBudget)).all()) == 2
