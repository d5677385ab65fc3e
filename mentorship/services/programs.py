"""Read-only access to the program catalog."""

from sqlalchemy.orm import Session

from mentorship.core.errors import NotFoundError
from mentorship.models.program import Program


def get_program(db: Session, program_id: int) -> Program:
    program = db.get(Program, program_id)
    if program is None:
        raise NotFoundError('Program not found.')
    return program
