# recupero/core/config.py
from __future__ import annotations

from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = PROJECT_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = "Recupero Moduli API"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # JWT emessi dal provider di autenticazione (Supabase)
    SUPABASE_JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # CORS (lista separata da virgole; vuoto = tutti)
    CORS_ORIGINS: str = ""

    # DB URLs (accetta una delle due)
    DATABASE_URL: str | None = None
    SQLALCHEMY_DATABASE_URI: str | None = None

    # Import tesoretti
    MODULE_MINUTES: int = 50
    CSV_DELIMITERS: str = ";,"

    @property
    def cors_list(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def db_url(self) -> str:
        """
        URL unificata per SQLAlchemy. Accetta DATABASE_URL o SQLALCHEMY_DATABASE_URI.
        Forza sslmode=require per Supabase se manca.
        """
        url = (self.DATABASE_URL or self.SQLALCHEMY_DATABASE_URI or "").strip()
        if not url:
            raise ValueError("Definire DATABASE_URL o SQLALCHEMY_DATABASE_URI nelle variabili d'ambiente.")
        if ("supabase.co" in url or "supabase.com" in url) and "sslmode=" not in url:
            sep = "&" if "?" in url else "?"
            url = f"{url}{sep}sslmode=require"
        return url


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
