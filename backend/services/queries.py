"""Filtered, paginated reads over feedback, users and courses."""

import math
from typing import Any, Sequence

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from backend.core import config
from backend.core.errors import NotFoundError
from backend.core.requester import ROLE_STUDENT, Requester, require_admin
from backend.models.course import Course
from backend.models.feedback import Feedback
from backend.models.user import User
from backend.schemas.user import UserResponse
from backend.services.aggregation import course_stats, student_summary
from backend.services.validation import validate_pagination


def pagination_meta(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        'currentPage': page,
        'totalPages': math.ceil(total / limit) if limit else 0,
        'totalItems': total,
        'itemsPerPage': limit,
    }


def _student_summary(user: User) -> dict[str, Any]:
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'profile_picture_url': user.profile_picture_url,
    }


def _course_summary(course: Course) -> dict[str, Any]:
    return {
        'id': course.id,
        'name': course.name,
        'code': course.code,
        'instructor': course.instructor,
        'credits': course.credits,
    }


def join_feedback(db: Session, rows: Sequence[Feedback], include_student: bool = True) -> list[dict[str, Any]]:
    """Attach student and course summaries, dropping rows whose references no longer resolve."""
    if not rows:
        return []

    course_ids = {row.course_id for row in rows}
    courses = {course.id: course for course in db.query(Course).filter(Course.id.in_(course_ids)).all()}
    students: dict[int, User] = {}
    if include_student:
        student_ids = {row.student_id for row in rows}
        students = {user.id: user for user in db.query(User).filter(User.id.in_(student_ids)).all()}

    joined = []
    for row in rows:
        course = courses.get(row.course_id)
        student = students.get(row.student_id)
        if course is None or (include_student and student is None):
            continue
        joined.append(
            {
                'id': row.id,
                'rating': row.rating,
                'message': row.message,
                'created_at': row.created_at,
                'updated_at': row.updated_at,
                'student': _student_summary(student) if include_student else None,
                'course': _course_summary(course),
            }
        )
    return joined


def _filtered_feedback(
    db: Session,
    course_id: int | None,
    rating: int | None,
    student_id: int | None,
) -> Query:
    query = db.query(Feedback)
    if course_id is not None:
        query = query.filter(Feedback.course_id == course_id)
    if rating is not None:
        query = query.filter(Feedback.rating == rating)
    if student_id is not None:
        query = query.filter(Feedback.student_id == student_id)
    return query


def _newest_first(query: Query, model) -> Query:
    return query.order_by(model.created_at.desc(), model.id.desc())


def list_feedback(
    db: Session,
    requester: Requester,
    course_id: int | None = None,
    rating: int | None = None,
    student_id: int | None = None,
    page: int = 1,
    limit: int | None = None,
) -> dict[str, Any]:
    require_admin(requester)
    limit = limit or config.FEEDBACK_PAGE_SIZE
    validate_pagination(page, limit, config.MAX_PAGE_SIZE)

    query = _filtered_feedback(db, course_id, rating, student_id)
    total = query.count()
    rows = _newest_first(query, Feedback).offset((page - 1) * limit).limit(limit).all()

    return {
        'items': join_feedback(db, rows),
        'pagination': pagination_meta(page, limit, total),
    }


def list_my_feedback(
    db: Session,
    requester: Requester,
    page: int = 1,
    limit: int | None = None,
) -> dict[str, Any]:
    limit = limit or config.FEEDBACK_PAGE_SIZE
    validate_pagination(page, limit, config.MAX_PAGE_SIZE)

    query = db.query(Feedback).filter(Feedback.student_id == requester.id)
    total = query.count()
    rows = _newest_first(query, Feedback).offset((page - 1) * limit).limit(limit).all()

    return {
        'items': join_feedback(db, rows, include_student=False),
        'pagination': pagination_meta(page, limit, total),
    }


def export_rows(
    db: Session,
    requester: Requester,
    course_id: int | None = None,
    rating: int | None = None,
    student_id: int | None = None,
) -> list[dict[str, Any]]:
    require_admin(requester)
    rows = _newest_first(_filtered_feedback(db, course_id, rating, student_id), Feedback).all()
    return join_feedback(db, rows)


def _feedback_counts(db: Session, user_ids: list[int]) -> dict[int, int]:
    if not user_ids:
        return {}
    counts = (
        db.query(Feedback.student_id, func.count(Feedback.id))
        .filter(Feedback.student_id.in_(user_ids))
        .group_by(Feedback.student_id)
        .all()
    )
    return {student_id: count for student_id, count in counts}


def list_users(
    db: Session,
    requester: Requester,
    search: str | None = None,
    blocked: bool | None = None,
    page: int = 1,
    limit: int | None = None,
) -> dict[str, Any]:
    require_admin(requester)
    limit = limit or config.USER_PAGE_SIZE
    validate_pagination(page, limit, config.MAX_PAGE_SIZE)

    query = db.query(User).filter(User.role == ROLE_STUDENT)
    term = (search or '').strip()
    if term:
        query = query.filter(
            or_(
                User.name.icontains(term, autoescape=True),
                User.email.icontains(term, autoescape=True),
            )
        )
    if blocked is not None:
        query = query.filter(User.is_blocked.is_(blocked))

    total = query.count()
    users = _newest_first(query, User).offset((page - 1) * limit).limit(limit).all()
    # One grouped lookup per page rather than one count per user.
    counts = _feedback_counts(db, [user.id for user in users])

    items = [
        {**UserResponse.model_validate(user).model_dump(), 'feedback_count': counts.get(user.id, 0)}
        for user in users
    ]
    return {'items': items, 'pagination': pagination_meta(page, limit, total)}


def get_user_detail(db: Session, requester: Requester, user_id: int) -> dict[str, Any]:
    require_admin(requester)
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')

    rows = _newest_first(db.query(Feedback).filter(Feedback.student_id == user.id), Feedback).all()
    stats = student_summary(rows)
    stats['joinedDate'] = user.created_at

    return {
        'user': user,
        'feedback': join_feedback(db, rows, include_student=False),
        'stats': stats,
    }


def list_courses(
    db: Session,
    requester: Requester,
    page: int = 1,
    limit: int | None = None,
) -> dict[str, Any]:
    limit = limit or config.COURSE_PAGE_SIZE
    validate_pagination(page, limit, config.MAX_PAGE_SIZE)

    query = db.query(Course)
    if not requester.is_admin:
        query = query.filter(Course.is_active.is_(True))

    total = query.count()
    courses = query.order_by(Course.name.asc()).offset((page - 1) * limit).limit(limit).all()
    return {'items': courses, 'pagination': pagination_meta(page, limit, total)}


def get_course(db: Session, requester: Requester, course_id: int) -> dict[str, Any]:
    course = db.get(Course, course_id)
    if course is None or (not requester.is_admin and not course.is_active):
        raise NotFoundError('Course not found')

    if not requester.is_admin:
        return {'course': course, 'stats': None}

    ratings = [rating for (rating,) in db.query(Feedback.rating).filter(Feedback.course_id == course.id).all()]
    return {'course': course, 'stats': course_stats(ratings)}
