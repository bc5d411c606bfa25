# recupero/db/session.py
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from recupero.core.config import settings
from recupero.core.logging import mask_url

logger = logging.getLogger(__name__)

db_url = settings.db_url
logger.info("[DB] Using: %s", mask_url(db_url))

engine_options = {"pool_pre_ping": True, "echo": False}
if not db_url.startswith("sqlite"):
    engine_options.update(
        pool_size=5,          # 5 connessioni concorrenti
        max_overflow=10,      # fino a 15 nei picchi
        pool_timeout=30,
        pool_recycle=1800,    # ricicla ogni 30 min
    )

engine = create_engine(db_url, **engine_options)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency per FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> bool:
    """Verifica che la connessione funzioni"""
    try:
        with engine.connect() as conn:
            row = conn.execute(text("SELECT 1")).fetchone()
            return bool(row and row[0] == 1)
    except Exception:
        logger.exception("[DB] Connection failed")
        return False
