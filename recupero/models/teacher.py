# recupero/models/teacher.py
import uuid

from sqlalchemy import Column, DateTime, String, Uuid, func
from sqlalchemy.orm import relationship

from recupero.db.base_class import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cognome = Column(String(100), nullable=False, index=True)
    nome = Column(String(100), nullable=False, index=True)
    email = Column(String(255), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    budgets = relationship(
        "TeacherBudget",
        back_populates="teacher",
        cascade="all, delete-orphan",
        order_by="TeacherBudget.import_date.desc()",
    )
    activities = relationship("RecoveryActivity", back_populates="teacher", cascade="all, delete-orphan")
