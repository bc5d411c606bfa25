"""
Fixture principali per i test dell'API recupero moduli
"""
import os
import uuid
from datetime import date
from typing import Dict, Generator

# Configurazione di test: va impostata prima di importare recupero.*
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-secret-per-i-token-dei-test"
os.environ["CORS_ORIGINS"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from recupero.core.security import create_access_token
from recupero.db.base import Base
from recupero.db.session import get_db
from recupero.main import app
from recupero.models.activity import RecoveryType
from recupero.models.budget import TeacherBudget
from recupero.models.school_year import SchoolYear
from recupero.models.teacher import Teacher


# ============================================================================
# Database di test
# ============================================================================

# SQLite in-memory condiviso tra le connessioni
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Sessione isolata: tabelle create all'inizio e rimosse alla fine del test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


def override_get_db():
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client(db_session) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ============================================================================
# Autenticazione
# ============================================================================

@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def auth_headers(user_id) -> Dict[str, str]:
    token = create_access_token({"sub": user_id, "email": "segreteria@scuola.it", "role": "authenticated"})
    return {"Authorization": f"Bearer {token}"}


# ============================================================================
# Dati di esempio
# ============================================================================

@pytest.fixture
def school_year(db_session) -> SchoolYear:
    year = SchoolYear(
        name="2024-25",
        start_date=date(2024, 9, 1),
        end_date=date(2025, 6, 30),
        weeks_count=30,
        is_active=True,
    )
    db_session.add(year)
    db_session.commit()
    db_session.refresh(year)
    return year


@pytest.fixture
def teacher(db_session) -> Teacher:
    t = Teacher(cognome="Rossi", nome="Mario", email="mario.rossi@scuola.it")
    db_session.add(t)
    db_session.commit()
    db_session.refresh(t)
    return t


@pytest.fixture
def budget(db_session, teacher, school_year) -> TeacherBudget:
    """Tesoretto piccolo (2 moduli) per esercitare l'esaurimento del budget."""
    b = TeacherBudget(
        teacher_id=teacher.id,
        school_year_id=school_year.id,
        minutes_weekly=100,
        minutes_annual=100,
        modules_annual=2,
        minutes_used=0,
        modules_used=0,
    )
    db_session.add(b)
    db_session.commit()
    db_session.refresh(b)
    return b


@pytest.fixture
def recovery_type(db_session) -> RecoveryType:
    rt = RecoveryType(name="Sportello", description="Sportello didattico", color="#3366FF")
    db_session.add(rt)
    db_session.commit()
    db_session.refresh(rt)
    return rt


CSV_EXPORT = (
    "Docente;Minuti/Settimana;Tesoretto Annuale (min);Moduli Annui (50 min);Saldo (min)\n"
    "Rossi Mario;1000;36000;720;36000\n"
    "Bianchi Anna;500;18000;360;18000\n"
)


@pytest.fixture
def csv_export() -> str:
    return CSV_EXPORT
