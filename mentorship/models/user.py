"""User model definitions."""

from sqlalchemy import Column, Integer, String
from mentorship.database import Base

MENTOR_ROLE = "mentor"
STUDENT_ROLE = "student"


class User(Base):
    """Represents an authenticated caller issued by the identity service."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, default=STUDENT_ROLE)  # mentor/student

    @property
    def is_mentor(self) -> bool:
        return self.role == MENTOR_ROLE
