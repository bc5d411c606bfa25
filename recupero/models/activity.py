# recupero/models/activity.py
import uuid

from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func, text
)
from sqlalchemy.orm import relationship

from recupero.db.base_class import Base


class RecoveryType(Base):
    __tablename__ = "recovery_types"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=False)  # #RRGGBB
    default_duration = Column(Integer, nullable=True)  # minuti, NULL = un modulo
    requires_approval = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    activities = relationship("RecoveryActivity", back_populates="recovery_type")


class RecoveryActivity(Base):
    __tablename__ = "recovery_activities"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    school_year_id = Column(Uuid(as_uuid=True), ForeignKey("school_years.id"), nullable=False, index=True)
    recovery_type_id = Column(Uuid(as_uuid=True), ForeignKey("recovery_types.id"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    module_number = Column(Integer, nullable=False)
    class_name = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    co_teacher_name = Column(String(200), nullable=True)

    duration_minutes = Column(Integer, nullable=False)
    modules_equivalent = Column(Numeric(6, 2, asdecimal=False), nullable=False)
    status = Column(String(20), nullable=False, server_default=text("'planned'"))  # planned | completed

    created_by = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    teacher = relationship("Teacher", back_populates="activities")
    recovery_type = relationship("RecoveryType", back_populates="activities")
    school_year = relationship("SchoolYear")
