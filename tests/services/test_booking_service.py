import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

from conftest import add_program, add_template, add_user
from mentorship.core.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    UnavailableError,
)
from mentorship.database import build_engine, init_db
from mentorship.models.program import GROUP_FORMAT
from mentorship.models.session import BOOKED_STATUS, COMPLETED_STATUS, MentorshipSession
from mentorship.models.user import MENTOR_ROLE, User
from mentorship.services import booking_ledger, booking_service
from mentorship.services.slots import Slot

NOW = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)
MONDAY = date(2026, 1, 5)
TUESDAY = date(2026, 1, 6)


@pytest.fixture
def tuesday_template(db, mentor):
    return add_template(db, mentor, 30, [(2, '09:00', '10:00')])


def book(db, caller, program, session_date=TUESDAY, start='09:00', end='09:30', **kwargs):
    kwargs.setdefault('now', NOW)
    return booking_service.book(
        db,
        caller=caller,
        program_id=program.id,
        session_date=session_date,
        start_time=start,
        end_time=end,
        **kwargs,
    )


def booked_count(db) -> int:
    return db.query(MentorshipSession).filter(MentorshipSession.status == BOOKED_STATUS).count()


def test_available_slots_is_empty_without_template(db, mentor) -> None:
    assert booking_service.available_slots(db, mentor.id, TUESDAY) == []


def test_available_slots_subtracts_booked_start_times(db, mentor, student, program, tuesday_template) -> None:
    book(db, student, program, start='09:00', end='09:30')

    assert booking_service.available_slots(db, mentor.id, TUESDAY) == [Slot('09:30', '10:00')]


def test_available_slots_ignores_completed_sessions(db, mentor, student, program, tuesday_template) -> None:
    session = book(db, student, program)
    booking_ledger.update_status(db, mentor, session.id, COMPLETED_STATUS)

    assert booking_service.available_slots(db, mentor.id, TUESDAY) == [
        Slot('09:00', '09:30'),
        Slot('09:30', '10:00'),
    ]


def test_book_creates_booked_session(db, mentor, student, program, tuesday_template) -> None:
    session = book(db, student, program, start='09:30', end='10:00')

    assert session.id is not None
    assert session.program_id == program.id
    assert session.mentor_id == mentor.id
    assert session.student_id == student.id
    assert session.date == TUESDAY
    assert (session.start_time, session.end_time) == ('09:30', '10:00')
    assert session.meeting_link == ''
    assert session.status == BOOKED_STATUS


def test_book_rejects_unknown_program(db, student) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        booking_service.book(db, student, 999, TUESDAY, '09:00', '09:30', now=NOW)

    assert exception_info.value.message == 'Program not found.'


def test_book_rejects_group_program(db, mentor, student, tuesday_template) -> None:
    group_program = add_program(db, mentor, program_format=GROUP_FORMAT, title='Study group')

    with pytest.raises(InvalidStateError) as exception_info:
        book(db, student, group_program)

    assert exception_info.value.message == 'This program is not 1:1 format.'
    assert booked_count(db) == 0


def test_book_rejects_past_dates(db, student, program, tuesday_template) -> None:
    with pytest.raises(InvalidArgumentError):
        book(db, student, program, now=datetime(2026, 1, 7, 0, 0, tzinfo=timezone.utc))


def test_book_allows_booking_later_today(db, student, program, tuesday_template) -> None:
    session = book(db, student, program, now=datetime(2026, 1, 6, 7, 0, tzinfo=timezone.utc))

    assert session.status == BOOKED_STATUS


@pytest.mark.parametrize(
    ('session_date', 'start', 'end'),
    [
        (MONDAY, '09:00', '09:30'),
        (TUESDAY, '09:15', '09:45'),
        (TUESDAY, '09:00', '10:00'),
        (TUESDAY, '10:00', '10:30'),
    ],
)
def test_book_rejects_times_outside_availability(db, student, program, tuesday_template, session_date, start, end) -> None:
    with pytest.raises(InvalidArgumentError) as exception_info:
        book(db, student, program, session_date=session_date, start=start, end=end)

    assert exception_info.value.message == "Requested time is not in the mentor's availability."
    assert booked_count(db) == 0


def test_book_rejects_malformed_times(db, student, program, tuesday_template) -> None:
    with pytest.raises(InvalidArgumentError):
        book(db, student, program, start='9am', end='9:30am')


def test_book_rejects_taken_slot(db, student, program, tuesday_template) -> None:
    other_student = add_user(db, 'other@example.com')
    book(db, student, program, start='09:00', end='09:30')

    with pytest.raises(ConflictError) as exception_info:
        book(db, other_student, program, start='09:00', end='09:30')

    assert exception_info.value.message == 'This slot is already booked.'
    assert booked_count(db) == 1


def test_book_rejects_second_active_session_for_program(db, mentor, student, program, tuesday_template) -> None:
    first = book(db, student, program, start='09:00', end='09:30')

    with pytest.raises(ConflictError) as exception_info:
        book(db, student, program, start='09:30', end='10:00')

    assert exception_info.value.message == 'You already have an active session booked for this program.'

    booking_ledger.update_status(db, mentor, first.id, COMPLETED_STATUS)
    second = book(db, student, program, start='09:30', end='10:00')

    assert second.status == BOOKED_STATUS
    assert booked_count(db) == 1


def test_book_allows_same_student_in_different_programs(db, mentor, student, program, tuesday_template) -> None:
    other_program = add_program(db, mentor, title='Advanced Python')

    book(db, student, program, start='09:00', end='09:30')
    book(db, student, other_program, start='09:30', end='10:00')

    assert booked_count(db) == 2


def test_book_translates_lost_race_into_conflict(
    db,
    student,
    program,
    tuesday_template,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    winner = add_user(db, 'winner@example.com')
    book(db, winner, program, start='09:00', end='09:30')

    # Simulate a request whose pre-checks ran before the winner committed.
    monkeypatch.setattr(booking_ledger, 'find_active', lambda *args, **kwargs: None)
    monkeypatch.setattr(booking_ledger, 'find_conflict', lambda *args, **kwargs: None)

    with pytest.raises(ConflictError) as exception_info:
        book(db, student, program, start='09:00', end='09:30')

    assert exception_info.value.message == 'This slot is already booked.'
    assert booked_count(db) == 1


def test_book_translates_lost_race_on_active_program_booking(
    db,
    student,
    program,
    tuesday_template,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    book(db, student, program, start='09:00', end='09:30')

    monkeypatch.setattr(booking_ledger, 'find_active', lambda *args, **kwargs: None)

    with pytest.raises(ConflictError):
        book(db, student, program, start='09:30', end='10:00')

    assert booked_count(db) == 1


def test_book_abandons_when_deadline_has_passed(db, student, program, tuesday_template) -> None:
    with pytest.raises(UnavailableError):
        book(db, student, program, deadline=time.monotonic() - 1)

    assert booked_count(db) == 0


def test_book_abandoned_after_insert_leaves_no_session(db, student, program, tuesday_template, monkeypatch) -> None:
    # Only the check after the row is flushed sees the deadline expired.
    readings = iter([0.0, 0.0, 100.0])
    monkeypatch.setattr(booking_service, 'time', SimpleNamespace(monotonic=lambda: next(readings)))

    with pytest.raises(UnavailableError):
        book(db, student, program, deadline=50.0)

    assert next(readings, None) is None
    assert booked_count(db) == 0

    session = book(db, student, program)
    assert (session.start_time, session.status) == ('09:00', BOOKED_STATUS)
    assert booked_count(db) == 1


def test_concurrent_bookings_for_one_slot_leave_a_single_session(tmp_path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    init_db(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    setup = session_factory()
    mentor = add_user(setup, 'race-mentor@example.com', role=MENTOR_ROLE)
    program = add_program(setup, mentor)
    add_template(setup, mentor, 30, [(2, '09:00', '10:00')])
    student_ids = [add_user(setup, f'racer{i}@example.com').id for i in range(6)]
    program_id = program.id
    setup.close()

    barrier = threading.Barrier(len(student_ids))

    def attempt(student_id: int) -> str:
        db = session_factory()
        try:
            caller = db.get(User, student_id)
            barrier.wait()
            booking_service.book(db, caller, program_id, TUESDAY, '09:00', '09:30', now=NOW)
            return 'booked'
        except ConflictError:
            return 'conflict'
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=len(student_ids)) as pool:
        outcomes = list(pool.map(attempt, student_ids))

    assert outcomes.count('booked') == 1
    assert outcomes.count('conflict') == len(student_ids) - 1

    check = session_factory()
    try:
        assert booked_count(check) == 1
    finally:
        check.close()
        engine.dispose()
