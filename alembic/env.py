# alembic/env.py
from __future__ import annotations

import logging
import os
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

# --- Carica .env dalla root del progetto ---
PROJECT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(PROJECT_DIR / ".env")

# --- Rimuove variabili PG che interferiscono e forza UTF-8 ---
for var in ("PGSERVICE", "PGSERVICEFILE", "PGSYSCONFDIR", "PGAPPNAME", "PGOPTIONS", "PGPASSFILE"):
    os.environ.pop(var, None)
os.environ.setdefault("PGCLIENTENCODING", "UTF8")

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

from recupero.core.config import get_settings  # noqa: E402
from recupero.core.logging import mask_url  # noqa: E402
from recupero.db.base import Base  # noqa: E402

# --- URL di connessione: .env, con fallback a sqlalchemy.url di alembic.ini ---
try:
    db_url = get_settings().db_url
except ValueError:
    db_url = config.get_main_option("sqlalchemy.url")

if not db_url:
    raise RuntimeError(
        "URL del DB non trovata. Definire DATABASE_URL nel file .env "
        "oppure sqlalchemy.url in alembic.ini"
    )

config.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))
target_metadata = Base.metadata

logger.info("sqlalchemy.url = %s", mask_url(db_url))


def run_migrations_offline() -> None:
    """Migrazioni in modalità 'offline' (solo SQL)."""
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # NullPool basta per le migrazioni
    engine = create_engine(db_url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
