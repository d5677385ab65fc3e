"""Persistence of mentorship sessions and the double-booking invariants.

Two invariants hold for rows with ``status = 'booked'``:

* one row per ``(mentor_id, date, start_time)``: a mentor is never
  double-booked;
* one row per ``(program_id, student_id)``: a student holds at most one active
  booking per program (rebooking after completion is allowed).

Both are partial unique indexes on ``sessions``, so ``insert`` is a single
atomic check-and-write. The ``find_*`` lookups exist for early, friendlier
error messages only.
"""

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mentorship.core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from mentorship.models.session import BOOKED_STATUS, COMPLETED_STATUS, MentorshipSession
from mentorship.models.user import User

logger = logging.getLogger(__name__)

SLOT_ALREADY_BOOKED = 'This slot is already booked.'
ALLOWED_TRANSITIONS = {(BOOKED_STATUS, COMPLETED_STATUS)}


def find_conflict(
    db: Session,
    mentor_id: int,
    session_date: date,
    start_time: str,
    status: str = BOOKED_STATUS,
) -> MentorshipSession | None:
    return db.query(MentorshipSession).filter(
        MentorshipSession.mentor_id == mentor_id,
        MentorshipSession.date == session_date,
        MentorshipSession.start_time == start_time,
        MentorshipSession.status == status,
    ).first()


def find_active(
    db: Session,
    program_id: int,
    student_id: int,
    status: str = BOOKED_STATUS,
) -> MentorshipSession | None:
    return db.query(MentorshipSession).filter(
        MentorshipSession.program_id == program_id,
        MentorshipSession.student_id == student_id,
        MentorshipSession.status == status,
    ).first()


def list_booked_on(db: Session, mentor_id: int, session_date: date) -> set[str]:
    rows = db.query(MentorshipSession.start_time).filter(
        MentorshipSession.mentor_id == mentor_id,
        MentorshipSession.date == session_date,
        MentorshipSession.status == BOOKED_STATUS,
    ).all()
    return {start_time for (start_time,) in rows}


def insert(db: Session, session: MentorshipSession) -> MentorshipSession:
    """Write ``session`` inside the caller's transaction.

    Raises ``ConflictError`` when the store rejects the row on either
    uniqueness invariant; the transaction is rolled back in that case.
    """
    db.add(session)
    try:
        db.flush()
    except IntegrityError as exc:
        logger.info(
            'Rejected concurrent booking for mentor %s on %s at %s.',
            session.mentor_id,
            session.date,
            session.start_time,
        )
        db.rollback()
        raise ConflictError(SLOT_ALREADY_BOOKED) from exc
    return session


def get(db: Session, session_id: int) -> MentorshipSession:
    session = db.get(MentorshipSession, session_id)
    if session is None:
        raise NotFoundError('Session not found.')
    return session


def list_for(db: Session, user: User) -> list[MentorshipSession]:
    if user.is_mentor:
        owner_filter = MentorshipSession.mentor_id == user.id
    else:
        owner_filter = MentorshipSession.student_id == user.id

    return db.query(MentorshipSession).filter(owner_filter).order_by(
        MentorshipSession.date.desc(),
        MentorshipSession.start_time.desc(),
    ).all()


def _get_owned(db: Session, caller: User, session_id: int, detail: str) -> MentorshipSession:
    session = get(db, session_id)
    if session.mentor_id != caller.id:
        raise ForbiddenError(detail)
    return session


def update_status(db: Session, caller: User, session_id: int, new_status: str) -> MentorshipSession:
    session = _get_owned(db, caller, session_id, 'Only the mentor can mark complete.')

    if (session.status, new_status) not in ALLOWED_TRANSITIONS:
        raise InvalidStateError(f'Cannot move a {session.status} session to {new_status}.')

    session.status = new_status
    db.commit()
    db.refresh(session)
    return session


def update_meeting_link(db: Session, caller: User, session_id: int, link: str | None) -> MentorshipSession:
    session = _get_owned(db, caller, session_id, 'Only the mentor can update the meeting link.')

    session.meeting_link = (link or '').strip()
    db.commit()
    db.refresh(session)
    return session
