"""Per-mentor weekly availability templates."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mentorship.core import config
from mentorship.core.errors import ForbiddenError, InvalidArgumentError
from mentorship.models.availability import AvailabilityTemplate, AvailabilityWindow
from mentorship.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklyWindow:
    day_of_week: int
    start_time: str
    end_time: str


def default_template(mentor_id: int) -> AvailabilityTemplate:
    """Unsaved template standing in for a mentor with no stored availability."""
    return AvailabilityTemplate(
        mentor_id=mentor_id,
        slot_duration_minutes=config.DEFAULT_SLOT_DURATION_MINUTES,
        windows=[],
    )


def find_template(db: Session, mentor_id: int, for_update: bool = False) -> AvailabilityTemplate | None:
    query = db.query(AvailabilityTemplate).filter(AvailabilityTemplate.mentor_id == mentor_id)
    if for_update:
        query = query.with_for_update()
    return query.first()


def get_template(db: Session, mentor_id: int) -> AvailabilityTemplate:
    return find_template(db, mentor_id) or default_template(mentor_id)


def validate_slot_duration(slot_duration_minutes: int) -> None:
    if not (config.MIN_SLOT_DURATION_MINUTES <= slot_duration_minutes <= config.MAX_SLOT_DURATION_MINUTES):
        raise InvalidArgumentError(
            f'Slot duration must be {config.MIN_SLOT_DURATION_MINUTES}-'
            f'{config.MAX_SLOT_DURATION_MINUTES} minutes.'
        )


def _lock_or_create(db: Session, mentor_id: int, slot_duration_minutes: int) -> AvailabilityTemplate:
    template = find_template(db, mentor_id, for_update=True)
    if template is not None:
        return template

    template = AvailabilityTemplate(mentor_id=mentor_id, slot_duration_minutes=slot_duration_minutes)
    db.add(template)
    try:
        db.flush()
    except IntegrityError:
        # Another request created this mentor's template first; replace that one.
        db.rollback()
        template = find_template(db, mentor_id, for_update=True)
        if template is None:
            raise
        logger.info('Availability template for mentor %s created concurrently; replacing it.', mentor_id)
    return template


def put_template(
    db: Session,
    caller: User,
    mentor_id: int,
    slot_duration_minutes: int,
    windows: Iterable[WeeklyWindow],
) -> AvailabilityTemplate:
    """Create or fully replace ``mentor_id``'s template.

    The stored window list is overwritten, never merged. Concurrent calls
    for the same mentor serialize on the template row and the last one wins.
    """
    if not caller.is_mentor or caller.id != mentor_id:
        raise ForbiddenError('Only mentors can set availability.')

    validate_slot_duration(slot_duration_minutes)
    windows = list(windows)

    template = _lock_or_create(db, mentor_id, slot_duration_minutes)
    template.slot_duration_minutes = slot_duration_minutes

    db.execute(
        delete(AvailabilityWindow)
        .where(AvailabilityWindow.template_id == template.id)
        .execution_options(synchronize_session=False)
    )
    db.add_all(
        AvailabilityWindow(
            template_id=template.id,
            position=position,
            day_of_week=window.day_of_week,
            start_time=window.start_time,
            end_time=window.end_time,
        )
        for position, window in enumerate(windows)
    )

    db.commit()
    db.refresh(template)

    logger.info(
        'Availability replaced for mentor %s: %s-minute slots, %s windows.',
        mentor_id,
        slot_duration_minutes,
        len(template.windows),
    )
    return template
