from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config

connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_feedback_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_feedback_schema() -> None:
    """Make sure legacy feedback tables carry the one-per-student-per-course index."""
    global _feedback_schema_checked

    if _feedback_schema_checked:
        return

    with _schema_lock:
        if _feedback_schema_checked:
            return

        inspector = inspect(engine)

        if 'feedback' not in inspector.get_table_names():
            _feedback_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_feedback_student_course '
                    'ON feedback(student_id, course_id)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS ix_feedback_course_rating ON feedback(course_id, rating)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS ix_feedback_created_at ON feedback(created_at)')
            )

        _feedback_schema_checked = True
