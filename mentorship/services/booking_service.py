"""Turning slot selections into booked sessions."""

import logging
import time
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from mentorship.core.errors import ConflictError, InvalidArgumentError, InvalidStateError, UnavailableError
from mentorship.models.program import ONE_ON_ONE_FORMAT
from mentorship.models.session import BOOKED_STATUS, MentorshipSession
from mentorship.models.user import User
from mentorship.services import availability_store, booking_ledger, programs
from mentorship.services.slots import Slot, generate_slots, parse_hhmm

logger = logging.getLogger(__name__)

ACTIVE_SESSION_EXISTS = 'You already have an active session booked for this program.'


def available_slots(db: Session, mentor_id: int, slot_date: date) -> list[Slot]:
    """Generated slots for the date minus the ones already booked, in generator order."""
    template = availability_store.get_template(db, mentor_id)
    candidates = generate_slots(template.windows, template.slot_duration_minutes, slot_date)
    if not candidates:
        return []

    booked_start_times = booking_ledger.list_booked_on(db, mentor_id, slot_date)
    return [slot for slot in candidates if slot.start_time not in booked_start_times]


def _check_deadline(db: Session, deadline: float | None) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        db.rollback()
        raise UnavailableError('Booking deadline exceeded. Please try again.')


def _find_candidate_slot(db: Session, mentor_id: int, slot_date: date, start_time: str) -> Slot | None:
    template = availability_store.get_template(db, mentor_id)
    for slot in generate_slots(template.windows, template.slot_duration_minutes, slot_date):
        if slot.start_time == start_time:
            return slot
    return None


def book(
    db: Session,
    caller: User,
    program_id: int,
    session_date: date,
    start_time: str,
    end_time: str,
    now: datetime | None = None,
    deadline: float | None = None,
) -> MentorshipSession:
    """Book a 1:1 session for ``caller``.

    ``now`` is the reference instant for rejecting past dates (defaults to the
    current UTC time). ``deadline`` is a ``time.monotonic()`` value after which
    the whole operation is abandoned with ``UnavailableError``.
    """
    program = programs.get_program(db, program_id)
    if program.format != ONE_ON_ONE_FORMAT:
        raise InvalidStateError('This program is not 1:1 format.')

    now = now or datetime.now(timezone.utc)
    today = now.astimezone(timezone.utc).date() if now.tzinfo else now.date()
    if session_date < today:
        raise InvalidArgumentError('Sessions cannot be booked in the past.')

    if parse_hhmm(start_time) is None or parse_hhmm(end_time) is None:
        raise InvalidArgumentError('Start and end times must be HH:mm.')

    _check_deadline(db, deadline)

    if booking_ledger.find_active(db, program_id, caller.id) is not None:
        raise ConflictError(ACTIVE_SESSION_EXISTS)

    if booking_ledger.find_conflict(db, program.mentor_id, session_date, start_time) is not None:
        raise ConflictError(booking_ledger.SLOT_ALREADY_BOOKED)

    slot = _find_candidate_slot(db, program.mentor_id, session_date, start_time)
    if slot is None or slot.end_time != end_time:
        raise InvalidArgumentError("Requested time is not in the mentor's availability.")

    _check_deadline(db, deadline)

    session = MentorshipSession(
        program_id=program.id,
        mentor_id=program.mentor_id,
        student_id=caller.id,
        date=session_date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        meeting_link='',
        status=BOOKED_STATUS,
    )
    booking_ledger.insert(db, session)

    _check_deadline(db, deadline)

    db.commit()
    db.refresh(session)

    logger.info(
        'Session %s booked: program %s, mentor %s, student %s, %s %s-%s.',
        session.id,
        program.id,
        program.mentor_id,
        caller.id,
        session_date,
        session.start_time,
        session.end_time,
    )
    return session
