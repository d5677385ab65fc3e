"""Program model definitions."""

from sqlalchemy import Column, Integer, ForeignKey, String
from mentorship.database import Base

ONE_ON_ONE_FORMAT = "1:1"
GROUP_FORMAT = "Group"


class Program(Base):
    """Catalog entry owned by a mentor. Read-only for the booking engine."""
    __tablename__ = "programs"

    id = Column(Integer, primary_key=True)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False, default="")
    format = Column(String, nullable=False, index=True)
