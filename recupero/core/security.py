# recupero/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from recupero.core.config import settings

# auto_error=False: l'assenza del token deve produrre lo stesso 401 { error: "Unauthorized" }
bearer_scheme = HTTPBearer(auto_error=False)

UNAUTHORIZED = "Unauthorized"


class AuthUser(BaseModel):
    """Utente autenticato, ricavato dai claims del JWT del provider."""

    id: UUID
    email: str | None = None
    role: str | None = None


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=UNAUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(subject: dict[str, Any], expires_minutes: int = 60) -> str:
    """
    Genera un JWT compatibile con quelli del provider (usato da script e test).
    - 'sub' normalizzato a str, 'aud' = JWT_AUDIENCE se non presente.
    """
    now = datetime.now(timezone.utc)
    claims = dict(subject)
    if "sub" in claims and not isinstance(claims["sub"], str):
        claims["sub"] = str(claims["sub"])
    claims.setdefault("aud", settings.JWT_AUDIENCE)

    to_encode = {
        **claims,
        "iat": int(now.timestamp()),
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(to_encode, settings.SUPABASE_JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decodifica esigendo 'exp' e 'sub' e verificando scadenza e audience.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"require": ["exp", "sub"], "verify_exp": True},
            leeway=5,  # piccolo margine per lo skew dell'orologio
        )
    except jwt.InvalidTokenError:
        raise _unauthorized()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthUser:
    """
    Restituisce l'utente del token. Non tocca il database: una richiesta
    non autenticata non apre alcuna query.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized()

    payload = decode_token(credentials.credentials)
    try:
        user_id = UUID(str(payload["sub"]))
    except (KeyError, ValueError):
        raise _unauthorized()

    return AuthUser(id=user_id, email=payload.get("email"), role=payload.get("role"))
