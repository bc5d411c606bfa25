from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base dichiarativa comune per tutti i modelli SQLAlchemy."""
    pass
