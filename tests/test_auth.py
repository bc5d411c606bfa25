"""
Autenticazione: 401 con envelope { error } e nessun accesso al database
"""
import uuid

import jwt
import pytest
from fastapi.testclient import TestClient

from recupero.core.config import settings
from recupero.core.security import create_access_token, decode_token
from recupero.db.session import get_db
from recupero.main import app

PROTECTED = [
    ("get", "/api/v1/teachers"),
    ("get", "/api/v1/budgets"),
    ("get", "/api/v1/activities"),
    ("get", "/api/v1/school-years/active"),
    ("get", "/api/v1/recovery-types"),
    ("get", "/api/v1/reports/overview"),
    ("get", "/api/v1/activities/weekly"),
]


@pytest.fixture
def db_calls():
    """Sostituisce get_db con una dependency che registra ogni apertura di sessione."""
    calls = []

    def tracking_get_db():
        calls.append(1)
        yield None

    app.dependency_overrides[get_db] = tracking_get_db
    yield calls
    app.dependency_overrides.clear()


@pytest.mark.parametrize("method, path", PROTECTED)
def test_missing_token_is_rejected_without_db(db_calls, method, path):
    with TestClient(app) as c:
        resp = getattr(c, method)(path)

    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    assert db_calls == []


def test_create_without_token_is_rejected_without_db(db_calls):
    with TestClient(app) as c:
        resp = c.post("/api/v1/teachers", json={"cognome": "Rossi", "nome": "Mario"})
    assert resp.status_code == 401
    assert db_calls == []


@pytest.mark.parametrize(
    "token",
    [
        "non-un-jwt",
        jwt.encode({"sub": str(uuid.uuid4()), "aud": "authenticated", "exp": 4102444800}, "altro-secret", algorithm="HS256"),
        jwt.encode({"sub": str(uuid.uuid4()), "aud": "altro", "exp": 4102444800}, settings.SUPABASE_JWT_SECRET, algorithm="HS256"),
        jwt.encode({"sub": "non-uuid", "aud": "authenticated", "exp": 4102444800}, settings.SUPABASE_JWT_SECRET, algorithm="HS256"),
    ],
)
def test_invalid_tokens_are_rejected(db_calls, token):
    with TestClient(app) as c:
        resp = c.get("/api/v1/teachers", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    assert db_calls == []


def test_expired_token_is_rejected(db_calls):
    token = create_access_token({"sub": uuid.uuid4()}, expires_minutes=-10)
    with TestClient(app) as c:
        resp = c.get("/api/v1/teachers", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_token_round_trip():
    user_id = uuid.uuid4()
    payload = decode_token(create_access_token({"sub": user_id, "email": "a@b.it"}))
    assert payload["sub"] == str(user_id)
    assert payload["aud"] == "authenticated"
    assert payload["email"] == "a@b.it"


def test_health_is_public():
    with TestClient(app) as c:
        assert c.get("/api/v1/health").json() == {"status": "ok"}
        assert c.get("/health").status_code == 200
        assert c.get("/api/v1/health/db").json() == {"db": "ok"}
