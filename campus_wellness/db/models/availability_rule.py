from datetime import time

from sqlalchemy import CheckConstraint, ForeignKey, SmallInteger, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_wellness.db.base import Base


class AvailabilityRule(Base):
    """One recurring weekly window; day_of_week counts from Sunday (0) to Saturday (6)."""

    __tablename__ = "consultant_availability"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_consultant_availability_day_of_week"),
        CheckConstraint("end_time > start_time", name="ck_consultant_availability_window"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    consultant_id: Mapped[int] = mapped_column(
        ForeignKey("consultants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    consultant = relationship("Consultant", back_populates="availability_rules")
