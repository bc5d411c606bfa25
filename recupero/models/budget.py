# recupero/models/budget.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship

from recupero.db.base_class import Base


class TeacherBudget(Base):
    """Tesoretto annuale di un docente per un anno scolastico."""

    __tablename__ = "teacher_budgets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    school_year_id = Column(Uuid(as_uuid=True), ForeignKey("school_years.id", ondelete="CASCADE"), nullable=False, index=True)

    minutes_weekly = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    minutes_annual = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    modules_annual = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    minutes_used = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    modules_used = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)

    import_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    import_source = Column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("teacher_id", "school_year_id", name="uq_budget_teacher_year"),
    )

    teacher = relationship("Teacher", back_populates="budgets")
    school_year = relationship("SchoolYear")

    @property
    def saldo(self) -> float:
        return (self.minutes_annual or 0) - (self.minutes_used or 0)

    @property
    def modules_remaining(self) -> float:
        return (self.modules_annual or 0) - (self.modules_used or 0)
