import re
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, Field, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorship.auth.dependencies import get_current_user
from mentorship.core.errors import DomainError
from mentorship.database import get_db
from mentorship.models.user import User
from mentorship.routes.common import CamelModel, raise_unavailable
from mentorship.services import availability_store, booking_service
from mentorship.services.availability_store import WeeklyWindow

router = APIRouter(tags=['availability'])

HHMM_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


class WeeklyWindowPayload(CamelModel):
    day_of_week: int = Field(
        ge=0,
        le=6,
        validation_alias=AliasChoices('dayOfWeek', 'day', 'day_of_week'),
        description='0=Sun .. 6=Sat',
    )
    start_time: str
    end_time: str

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_hhmm(cls, value: str) -> str:
        normalized = value.strip()
        if not HHMM_PATTERN.match(normalized):
            raise ValueError('Times must be zero-padded 24-hour HH:mm.')
        return normalized

    @model_validator(mode='after')
    def validate_order(self):
        if self.start_time >= self.end_time:
            raise ValueError('startTime must be before endTime.')
        return self


class UpdateAvailabilityRequest(CamelModel):
    slot_duration_minutes: int
    windows: list[WeeklyWindowPayload] = Field(default_factory=list)


class WeeklyWindowResponse(CamelModel):
    day_of_week: int
    start_time: str
    end_time: str


class AvailabilityResponse(CamelModel):
    mentor_id: int
    slot_duration_minutes: int
    windows: list[WeeklyWindowResponse]


class SlotResponse(CamelModel):
    start_time: str
    end_time: str


@router.get('/{mentor_id}', response_model=AvailabilityResponse)
def get_availability(mentor_id: int, db: Session = Depends(get_db)):
    try:
        return availability_store.get_template(db, mentor_id)
    except SQLAlchemyError as exc:
        raise_unavailable(db, exc)


@router.put('', response_model=AvailabilityResponse)
def update_availability(
    data: UpdateAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    windows = [
        WeeklyWindow(day_of_week=window.day_of_week, start_time=window.start_time, end_time=window.end_time)
        for window in data.windows
    ]
    try:
        return availability_store.put_template(
            db,
            caller=current_user,
            mentor_id=current_user.id,
            slot_duration_minutes=data.slot_duration_minutes,
            windows=windows,
        )
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise_unavailable(db, exc)


@router.get('/{mentor_id}/slots', response_model=list[SlotResponse])
def list_available_slots(
    mentor_id: int,
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    try:
        return [
            SlotResponse(start_time=slot.start_time, end_time=slot.end_time)
            for slot in booking_service.available_slots(db, mentor_id, slot_date)
        ]
    except SQLAlchemyError as exc:
        raise_unavailable(db, exc)
