"""Availability model definitions."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship
from mentorship.database import Base


class AvailabilityTemplate(Base):
    """A mentor's recurring weekly availability. At most one per mentor."""
    __tablename__ = "availability_templates"

    id = Column(Integer, primary_key=True)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    slot_duration_minutes = Column(Integer, nullable=False, default=30)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    windows = relationship(
        "AvailabilityWindow",
        order_by="AvailabilityWindow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "slot_duration_minutes BETWEEN 10 AND 60",
            name="ck_availability_slot_duration",
        ),
    )


class AvailabilityWindow(Base):
    """One weekly window; ``position`` keeps the mentor's stored order."""
    __tablename__ = "availability_windows"

    id = Column(Integer, primary_key=True)
    template_id = Column(
        Integer,
        ForeignKey("availability_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0=Sun .. 6=Sat
    start_time = Column(String(5), nullable=False)  # "HH:mm"
    end_time = Column(String(5), nullable=False)  # "HH:mm"
