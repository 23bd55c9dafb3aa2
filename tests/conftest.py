import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from backend.core.requester import ROLE_ADMIN, ROLE_STUDENT, Requester  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models.course import Course  # noqa: E402
from backend.models.feedback import Feedback  # noqa: E402
from backend.models.user import User  # noqa: E402

PLACEHOLDER_HASH = 'not-a-real-hash'


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Course.__table__, Feedback.__table__])

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=[Feedback.__table__, Course.__table__, User.__table__])


@pytest.fixture
def make_user(db):
    counter = {'value': 0}

    def _make_user(name: str | None = None, email: str | None = None, role: str = ROLE_STUDENT, **fields) -> User:
        counter['value'] += 1
        user = User(
            name=name or f'Student {counter["value"]}',
            email=email or f'student{counter["value"]}@example.com',
            password_hash=fields.pop('password_hash', PLACEHOLDER_HASH),
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_course(db):
    counter = {'value': 0}

    def _make_course(name: str | None = None, code: str | None = None, **fields) -> Course:
        counter['value'] += 1
        course = Course(
            name=name or f'Course {counter["value"]}',
            code=code or f'CRS{counter["value"]}',
            **fields,
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return _make_course


@pytest.fixture
def make_feedback(db):
    def _make_feedback(student: User, course: Course, rating: int = 4, message: str = 'Solid course overall.', **fields) -> Feedback:
        feedback = Feedback(
            student_id=student.id,
            course_id=course.id,
            rating=rating,
            message=message,
            **fields,
        )
        db.add(feedback)
        db.commit()
        db.refresh(feedback)
        return feedback

    return _make_feedback


@pytest.fixture
def admin(make_user):
    return make_user(name='Admin User', email='admin@example.com', role=ROLE_ADMIN)


@pytest.fixture
def admin_requester(admin) -> Requester:
    return Requester(id=admin.id, role=ROLE_ADMIN)


def as_requester(user: User) -> Requester:
    return Requester(id=user.id, role=user.role)
