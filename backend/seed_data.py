"""Reset the database to a small demo dataset.

Run with ``python -m backend.seed_data``.
"""

import logging

from sqlalchemy.orm import Session

from backend.auth.passwords import hash_password
from backend.core.logging_config import configure_logging
from backend.core.requester import ROLE_ADMIN, ROLE_STUDENT, Requester
from backend.database import Base, SessionLocal, engine
from backend.models.course import Course
from backend.models.feedback import Feedback
from backend.models.user import User
from backend.services import consistency

logger = logging.getLogger(__name__)

ADMIN = {'name': 'Admin User', 'email': 'admin@example.com', 'password': 'Admin123!'}

STUDENTS = [
    {
        'name': 'John Doe',
        'email': 'student@example.com',
        'password': 'Student123!',
        'phone': '1234567890',
        'address': '123 Main St, City, State 12345',
    },
    {
        'name': 'Jane Smith',
        'email': 'jane@example.com',
        'password': 'Student123!',
        'phone': '9876543210',
        'address': '456 Oak Ave, City, State 12345',
    },
    {
        'name': 'Bob Johnson',
        'email': 'bob@example.com',
        'password': 'Student123!',
        'phone': '5555555555',
        'address': '789 Pine Rd, City, State 12345',
    },
]

COURSES = [
    {
        'name': 'Computer Science Fundamentals',
        'code': 'CS101',
        'description': 'Introduction to programming concepts, algorithms, and data structures.',
        'instructor': 'Dr. Alice Smith',
        'credits': 3,
    },
    {
        'name': 'Data Structures and Algorithms',
        'code': 'CS201',
        'description': 'Advanced data structures, algorithm design and analysis.',
        'instructor': 'Prof. Bob Johnson',
        'credits': 4,
    },
    {
        'name': 'Web Development',
        'code': 'CS301',
        'description': 'Full-stack web development using modern technologies.',
        'instructor': 'Dr. Carol Wilson',
        'credits': 3,
    },
    {
        'name': 'Database Management Systems',
        'code': 'CS401',
        'description': 'Relational databases, SQL, and database design principles.',
        'instructor': 'Prof. David Brown',
        'credits': 3,
    },
    {
        'name': 'Software Engineering',
        'code': 'CS501',
        'description': 'Software development lifecycle, project management, and best practices.',
        'instructor': 'Dr. Emily Davis',
        'credits': 4,
    },
]

# (student index, course index, rating, message)
FEEDBACK = [
    (0, 0, 5, 'Excellent course! The instructor explained concepts very clearly and the assignments were challenging but fair.'),
    (1, 0, 4, 'Good introduction to computer science. Could use more practical examples.'),
    (0, 1, 4, 'Data structures are complex but the professor made it understandable. Great course overall.'),
    (2, 2, 5, 'Amazing web development course! Learned so much about modern frameworks and best practices.'),
    (1, 3, 3, 'Database concepts are important but the course was a bit dry. More interactive sessions would help.'),
    (2, 4, 5, 'Perfect blend of theory and practice. The software engineering principles will definitely help in my career.'),
]


def _create_user(db: Session, data: dict, role: str) -> User:
    user = User(
        name=data['name'],
        email=data['email'],
        password_hash=hash_password(data['password']),
        role=role,
        phone=data.get('phone'),
        address=data.get('address'),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def seed(db: Session) -> dict[str, int]:
    db.query(Feedback).delete()
    db.query(Course).delete()
    db.query(User).delete()
    db.commit()

    admin = _create_user(db, ADMIN, ROLE_ADMIN)
    admin_requester = Requester(id=admin.id, role=ROLE_ADMIN)
    students = [_create_user(db, data, ROLE_STUDENT) for data in STUDENTS]
    courses = [consistency.create_course(db, admin_requester, **data) for data in COURSES]

    for student_index, course_index, rating, message in FEEDBACK:
        student = students[student_index]
        consistency.create_feedback(
            db,
            Requester(id=student.id, role=ROLE_STUDENT),
            course_id=courses[course_index].id,
            rating=rating,
            message=message,
        )

    return {'students': len(students), 'courses': len(courses), 'feedback': len(FEEDBACK)}


def main() -> None:
    configure_logging()
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        counts = seed(db)
    finally:
        db.close()

    logger.info(
        'Seeded %s students, %s courses and %s feedback entries',
        counts['students'],
        counts['courses'],
        counts['feedback'],
    )
    logger.info('Admin login: %s / %s', ADMIN['email'], ADMIN['password'])


if __name__ == '__main__':
    main()
