"""Post-booking operations on a session: completion, meeting link, reads."""

import logging

from sqlalchemy.orm import Session

from mentorship.core.errors import ForbiddenError
from mentorship.models.session import COMPLETED_STATUS, MentorshipSession
from mentorship.models.user import User
from mentorship.services import booking_ledger

logger = logging.getLogger(__name__)


def complete(db: Session, caller: User, session_id: int) -> MentorshipSession:
    session = booking_ledger.update_status(db, caller, session_id, COMPLETED_STATUS)
    logger.info('Session %s marked completed by mentor %s.', session.id, caller.id)
    return session


def set_meeting_link(db: Session, caller: User, session_id: int, link: str | None) -> MentorshipSession:
    return booking_ledger.update_meeting_link(db, caller, session_id, link)


def list_sessions(db: Session, caller: User) -> list[MentorshipSession]:
    return booking_ledger.list_for(db, caller)


def get_session(db: Session, caller: User, session_id: int) -> MentorshipSession:
    session = booking_ledger.get(db, session_id)
    if caller.id not in (session.mentor_id, session.student_id):
        raise ForbiddenError('Not authorized to view this session.')
    return session
