"""Mentorship session model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import relationship
from mentorship.database import Base

BOOKED_STATUS = "booked"
COMPLETED_STATUS = "completed"

_ACTIVE_ONLY = text("status = 'booked'")


class MentorshipSession(Base):
    """A booked or completed 1:1 appointment between a mentor and a student."""
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True)
    program_id = Column(Integer, ForeignKey("programs.id"), nullable=False)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    meeting_link = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default=BOOKED_STATUS)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    program = relationship("Program", lazy="joined", innerjoin=True)
    mentor = relationship("User", foreign_keys=[mentor_id], lazy="joined", innerjoin=True)
    student = relationship("User", foreign_keys=[student_id], lazy="joined", innerjoin=True)

    # At most one booked row per mentor slot and per (program, student).
    __table_args__ = (
        Index(
            "uq_sessions_mentor_slot_booked",
            "mentor_id",
            "date",
            "start_time",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        Index(
            "uq_sessions_program_student_booked",
            "program_id",
            "student_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        Index("idx_sessions_mentor_date", "mentor_id", "date"),
        Index("idx_sessions_student", "student_id"),
    )
