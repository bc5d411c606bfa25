# recupero/db/base.py
from recupero.db.base_class import Base  # noqa: F401

# Importa tutti i modelli che definiscono tabelle, così Base.metadata è completo
# (usato da Alembic e dai test).
from recupero.models import teacher  # noqa: F401
from recupero.models import school_year  # noqa: F401
from recupero.models import budget  # noqa: F401
from recupero.models import activity  # noqa: F401
