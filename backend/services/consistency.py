"""Write-side rules for feedback, courses and user administration.

Every mutating operation takes an explicit ``Requester`` and raises a typed
``backend.core.errors`` failure at the point of violation. Input is validated
before the store is touched; uniqueness of (student, course) feedback is left
to the database index so concurrent submissions cannot both succeed.
"""

import logging
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core import config
from backend.core.clock import utcnow
from backend.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    UnexpectedError,
    ValidationError,
)
from backend.core.requester import ROLE_ADMIN, ROLE_STUDENT, Requester, require_admin
from backend.models.course import Course
from backend.models.feedback import Feedback
from backend.models.user import User
from backend.schemas.course import CourseCreateRequest, CourseUpdateRequest
from backend.schemas.feedback import FeedbackCreateRequest, FeedbackUpdateRequest
from backend.services.validation import validate_payload

logger = logging.getLogger(__name__)

DUPLICATE_FEEDBACK_MESSAGE = 'You have already submitted feedback for this course'
DUPLICATE_COURSE_MESSAGE = 'Course with this name or code already exists'
BLOCKED_MESSAGE = 'Your account has been blocked'


def commit_or_raise(db: Session, action: str) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database error while trying to %s', action)
        raise UnexpectedError() from exc


def load_requester_user(db: Session, requester: Requester) -> User:
    user = db.get(User, requester.id)
    if user is None:
        raise UnauthorizedError('User not found')
    return user


def ensure_not_blocked(user: User) -> None:
    if user.is_blocked:
        logger.warning('Blocked user %s attempted a write', user.id)
        raise ForbiddenError(BLOCKED_MESSAGE)


def _get_feedback(db: Session, feedback_id: int) -> Feedback:
    feedback = db.get(Feedback, feedback_id)
    if feedback is None:
        raise NotFoundError('Feedback not found')
    return feedback


def _get_course(db: Session, course_id: int) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError('Course not found')
    return course


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


def _has_feedback(db: Session, student_id: int, course_id: int) -> bool:
    return (
        db.query(Feedback.id)
        .filter(Feedback.student_id == student_id, Feedback.course_id == course_id)
        .first()
        is not None
    )


def create_feedback(
    db: Session,
    requester: Requester,
    course_id: int,
    rating: int,
    message: str,
) -> Feedback:
    payload = validate_payload(
        FeedbackCreateRequest,
        {'course_id': course_id, 'rating': rating, 'message': message},
    )

    student = load_requester_user(db, requester)
    if student.role != ROLE_STUDENT:
        raise ForbiddenError('Only students can submit feedback')
    ensure_not_blocked(student)
    _get_course(db, payload.course_id)

    feedback = Feedback(
        student_id=student.id,
        course_id=payload.course_id,
        rating=payload.rating,
        message=payload.message,
    )
    db.add(feedback)
    try:
        commit_or_raise(db, 'create feedback')
    except IntegrityError as exc:
        if _has_feedback(db, student.id, payload.course_id):
            logger.warning('Duplicate feedback rejected for student %s course %s', student.id, payload.course_id)
            raise ConflictError(DUPLICATE_FEEDBACK_MESSAGE) from exc
        # Any other violation means a reference vanished after the lookups above.
        raise NotFoundError('Course not found') from exc

    db.refresh(feedback)
    logger.info('Feedback %s created by student %s for course %s', feedback.id, student.id, feedback.course_id)
    return feedback


def update_feedback(
    db: Session,
    requester: Requester,
    feedback_id: int,
    rating: int | None = None,
    message: str | None = None,
) -> Feedback:
    feedback = _get_feedback(db, feedback_id)

    if feedback.student_id != requester.id:
        raise ForbiddenError('Not authorized to update this feedback')
    ensure_not_blocked(load_requester_user(db, requester))

    payload = validate_payload(FeedbackUpdateRequest, {'rating': rating, 'message': message})
    if payload.rating is None and payload.message is None:
        raise ValidationError({'non_field': 'Provide a rating or message to update'})

    if payload.rating is not None:
        feedback.rating = payload.rating
    if payload.message is not None:
        feedback.message = payload.message
    feedback.updated_at = utcnow()

    commit_or_raise(db, 'update feedback')
    db.refresh(feedback)
    return feedback


def delete_feedback(db: Session, requester: Requester, feedback_id: int) -> None:
    feedback = _get_feedback(db, feedback_id)

    if not requester.is_admin:
        if feedback.student_id != requester.id:
            raise ForbiddenError('Not authorized to delete this feedback')
        ensure_not_blocked(load_requester_user(db, requester))

    db.delete(feedback)
    commit_or_raise(db, 'delete feedback')
    logger.info('Feedback %s deleted by %s %s', feedback_id, requester.role, requester.id)


def _find_course_clash(db: Session, name: str | None, code: str | None, exclude_id: int | None = None) -> Course | None:
    conditions = []
    if name:
        conditions.append(Course.name == name)
    if code:
        conditions.append(func.upper(Course.code) == code.upper())
    if not conditions:
        return None

    query = db.query(Course).filter(or_(*conditions))
    if exclude_id is not None:
        query = query.filter(Course.id != exclude_id)
    return query.first()


def create_course(
    db: Session,
    requester: Requester,
    name: str,
    code: str,
    description: str | None = None,
    instructor: str | None = None,
    credits: int | None = None,
) -> Course:
    require_admin(requester)
    payload = validate_payload(
        CourseCreateRequest,
        {
            'name': name,
            'code': code,
            'description': description,
            'instructor': instructor,
            'credits': credits,
        },
    )

    if _find_course_clash(db, payload.name, payload.code):
        raise ConflictError(DUPLICATE_COURSE_MESSAGE)

    course = Course(
        name=payload.name,
        code=payload.code,
        description=payload.description,
        instructor=payload.instructor,
        credits=payload.credits,
        is_active=True,
    )
    db.add(course)
    try:
        commit_or_raise(db, 'create course')
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_COURSE_MESSAGE) from exc

    db.refresh(course)
    logger.info('Course %s (%s) created', course.id, course.code)
    return course


def update_course(
    db: Session,
    requester: Requester,
    course_id: int,
    changes: dict[str, Any],
    allow_code_change: bool | None = None,
) -> Course:
    """Apply the provided course fields.

    Only keys present in ``changes`` are touched. ``description``,
    ``instructor`` and ``credits`` may be cleared with ``None``; ``name``,
    ``code`` and ``is_active`` ignore ``None``.
    """
    require_admin(requester)
    if allow_code_change is None:
        allow_code_change = config.ALLOW_COURSE_CODE_CHANGES

    course = _get_course(db, course_id)
    payload = validate_payload(CourseUpdateRequest, changes)
    updates = payload.model_dump(exclude_unset=True)
    for required_field in ('name', 'code', 'is_active'):
        if updates.get(required_field, '') is None:
            updates.pop(required_field)

    new_code = updates.get('code')
    if new_code is not None and new_code != course.code.upper() and not allow_code_change:
        raise ValidationError({'code': 'Course code cannot be changed once set'})

    if _find_course_clash(db, updates.get('name'), new_code, exclude_id=course.id):
        raise ConflictError('Another course with this name or code already exists')

    for field_name, value in updates.items():
        setattr(course, field_name, value)
    course.updated_at = utcnow()

    try:
        commit_or_raise(db, 'update course')
    except IntegrityError as exc:
        raise ConflictError('Another course with this name or code already exists') from exc

    db.refresh(course)
    return course


def delete_course(db: Session, requester: Requester, course_id: int) -> None:
    require_admin(requester)
    course = _get_course(db, course_id)

    feedback_count = db.query(func.count(Feedback.id)).filter(Feedback.course_id == course.id).scalar() or 0
    if feedback_count > 0:
        raise ConflictError(
            f'Cannot delete course. It has {feedback_count} feedback submissions. Consider deactivating instead.',
            details={'feedback_count': feedback_count},
        )

    db.delete(course)
    try:
        commit_or_raise(db, 'delete course')
    except IntegrityError as exc:
        raise ConflictError('Cannot delete course while feedback references it.') from exc
    logger.info('Course %s deleted', course_id)


def toggle_user_block(db: Session, requester: Requester, user_id: int) -> User:
    require_admin(requester)
    user = _get_user(db, user_id)
    if user.role == ROLE_ADMIN:
        raise ForbiddenError('Cannot block admin users')

    user.is_blocked = not user.is_blocked
    commit_or_raise(db, 'toggle user block')
    db.refresh(user)
    logger.info('User %s %s by admin %s', user.id, 'blocked' if user.is_blocked else 'unblocked', requester.id)
    return user


def delete_user(db: Session, requester: Requester, user_id: int) -> int:
    """Delete a student and their feedback; returns the number of feedback rows removed."""
    require_admin(requester)
    user = _get_user(db, user_id)
    if user.role == ROLE_ADMIN:
        raise ForbiddenError('Cannot delete admin users')

    removed = (
        db.query(Feedback)
        .filter(Feedback.student_id == user.id)
        .delete(synchronize_session=False)
    )
    db.delete(user)
    commit_or_raise(db, 'delete user')
    logger.info('User %s deleted with %s feedback rows', user_id, removed)
    return removed
