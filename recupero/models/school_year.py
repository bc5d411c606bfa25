# recupero/models/school_year.py
import uuid

from sqlalchemy import Boolean, Column, Date, Integer, String, Uuid, text

from recupero.db.base_class import Base


class SchoolYear(Base):
    __tablename__ = "school_years"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(20), unique=True, nullable=False)  # es. 2024-25
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    weeks_count = Column(Integer, nullable=False, server_default=text("30"))
    is_active = Column(Boolean, nullable=False, default=False, index=True)
