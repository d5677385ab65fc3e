import logging
from typing import NoReturn

from fastapi import HTTPException, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorship.core.errors import DATABASE_UNAVAILABLE_DETAIL

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def raise_unavailable(db: Session, exc: SQLAlchemyError) -> NoReturn:
    db.rollback()
    logger.exception('Database error while handling request.')
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    ) from exc
