import time
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorship.auth.dependencies import get_current_user
from mentorship.core.errors import DomainError
from mentorship.database import get_db
from mentorship.models.user import User
from mentorship.routes.common import CamelModel, raise_unavailable
from mentorship.services import booking_service, session_lifecycle

router = APIRouter(tags=['sessions'])

BOOKING_TIMEOUT_SECONDS = 10.0


class BookSessionRequest(CamelModel):
    program_id: int
    date: date
    start_time: str
    end_time: str


class MeetingLinkRequest(CamelModel):
    meeting_link: str | None = None


class ParticipantSummary(CamelModel):
    id: int
    name: str


class ProgramSummary(CamelModel):
    id: int
    title: str
    format: str


class SessionResponse(CamelModel):
    id: int
    program_id: int
    mentor_id: int
    student_id: int
    date: date
    start_time: str
    end_time: str
    meeting_link: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    program: ProgramSummary
    mentor: ParticipantSummary
    student: ParticipantSummary


@router.post('/book', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def book_session(
    data: BookSessionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return booking_service.book(
            db,
            caller=current_user,
            program_id=data.program_id,
            session_date=data.date,
            start_time=data.start_time.strip(),
            end_time=data.end_time.strip(),
            now=datetime.now(timezone.utc),
            deadline=time.monotonic() + BOOKING_TIMEOUT_SECONDS,
        )
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise_unavailable(db, exc)


@router.get('', response_model=list[SessionResponse])
def list_my_sessions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return session_lifecycle.list_sessions(db, current_user)
    except SQLAlchemyError as exc:
        raise_unavailable(db, exc)


@router.get('/{session_id}', response_model=SessionResponse)
def get_session_detail(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return session_lifecycle.get_session(db, current_user, session_id)
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise_unavailable(db, exc)


@router.patch('/{session_id}/complete', response_model=SessionResponse)
def complete_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return session_lifecycle.complete(db, current_user, session_id)
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise_unavailable(db, exc)


@router.patch('/{session_id}/link', response_model=SessionResponse)
def update_meeting_link(
    session_id: int,
    data: MeetingLinkRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return session_lifecycle.set_meeting_link(db, current_user, session_id, data.meeting_link)
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise_unavailable(db, exc)
