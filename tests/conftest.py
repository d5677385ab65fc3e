import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from mentorship.database import Base, init_db  # noqa: E402
from mentorship.models.availability import AvailabilityTemplate, AvailabilityWindow  # noqa: E402
from mentorship.models.program import ONE_ON_ONE_FORMAT, Program  # noqa: E402
from mentorship.models.user import MENTOR_ROLE, STUDENT_ROLE, User  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


def add_user(db, email: str, role: str = STUDENT_ROLE, name: str = '') -> User:
    user = User(email=email, role=role, name=name or email.split('@')[0])
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_program(db, mentor: User, program_format: str = ONE_ON_ONE_FORMAT, title: str = 'Intro to Python') -> Program:
    program = Program(mentor_id=mentor.id, title=title, format=program_format)
    db.add(program)
    db.commit()
    db.refresh(program)
    return program


def add_template(db, mentor: User, slot_duration_minutes: int, windows: list[tuple[int, str, str]]) -> AvailabilityTemplate:
    template = AvailabilityTemplate(
        mentor_id=mentor.id,
        slot_duration_minutes=slot_duration_minutes,
        windows=[
            AvailabilityWindow(position=position, day_of_week=day, start_time=start, end_time=end)
            for position, (day, start, end) in enumerate(windows)
        ],
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@pytest.fixture
def mentor(db) -> User:
    return add_user(db, 'mentor@example.com', role=MENTOR_ROLE)


@pytest.fixture
def student(db) -> User:
    return add_user(db, 'student@example.com')


@pytest.fixture
def program(db, mentor) -> Program:
    return add_program(db, mentor)
