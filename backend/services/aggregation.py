"""Read-only statistics over feedback, courses and users.

The computations are plain functions over a ``Snapshot`` of rows (anything
exposing the model attributes), so they can be exercised without a database.
The ``get_*`` functions at the bottom load a snapshot from a session and
enforce admin access.

Averages stay unrounded while rows are combined and are rounded half-up to
two decimals only when a payload is built.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

from sqlalchemy.orm import Session

from backend.core import config
from backend.core.clock import utcnow
from backend.core.errors import NotFoundError, ValidationError
from backend.core.requester import ROLE_STUDENT, Requester, require_admin
from backend.models.course import Course
from backend.models.feedback import Feedback
from backend.models.user import User

RECENT_TRENDS_DAYS = 30
RECENT_ACTIVITY_DAYS = 7
TOP_COURSES_MIN_FEEDBACK = 3
TOP_COURSES_LIMIT = 5
COURSE_RANKING_LIMIT = 10
DAY_FORMAT = '%Y-%m-%d'


@dataclass
class Snapshot:
    users: Sequence[Any] = field(default_factory=list)
    courses: Sequence[Any] = field(default_factory=list)
    feedback: Sequence[Any] = field(default_factory=list)


@dataclass
class _Rollup:
    count: int = 0
    total: int = 0

    def add(self, rating: int) -> None:
        self.count += 1
        self.total += rating

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0


def round_rating(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def _day(moment: datetime) -> str:
    return moment.strftime(DAY_FORMAT)


def _since(rows: Iterable[Any], start: datetime) -> list[Any]:
    return [row for row in rows if row.created_at is not None and row.created_at >= start]


def _overall(rows: Iterable[Any]) -> _Rollup:
    rollup = _Rollup()
    for row in rows:
        rollup.add(row.rating)
    return rollup


def _rating_counts(rows: Iterable[Any]) -> list[dict[str, int]]:
    counts = Counter(row.rating for row in rows)
    return [{'rating': rating, 'count': counts[rating]} for rating in sorted(counts)]


def _daily_rollups(rows: Iterable[Any], with_ratings: bool = True) -> dict[str, _Rollup]:
    days: dict[str, _Rollup] = {}
    for row in rows:
        rollup = days.setdefault(_day(row.created_at), _Rollup())
        if with_ratings:
            rollup.add(row.rating)
        else:
            rollup.count += 1
    return dict(sorted(days.items()))


def _course_rollups(rows: Iterable[Any], courses: Sequence[Any]) -> list[tuple[Any, _Rollup]]:
    """Group feedback by course, skipping rows whose course no longer exists."""
    courses_by_id = {course.id: course for course in courses}
    rollups: dict[int, _Rollup] = {}
    for row in rows:
        if row.course_id not in courses_by_id:
            continue
        rollups.setdefault(row.course_id, _Rollup()).add(row.rating)
    return [(courses_by_id[course_id], rollup) for course_id, rollup in rollups.items()]


def _by_popularity(rollups: list[tuple[Any, _Rollup]]) -> list[tuple[Any, _Rollup]]:
    return sorted(rollups, key=lambda item: (-item[1].count, item[0].name))


def course_stats(ratings: Iterable[int]) -> dict[str, Any]:
    ratings = list(ratings)
    if not ratings:
        return {'totalFeedback': 0, 'avgRating': 0.0, 'ratingDistribution': {}}

    distribution = Counter(ratings)
    return {
        'totalFeedback': len(ratings),
        'avgRating': round_rating(sum(ratings) / len(ratings)),
        'ratingDistribution': {rating: distribution[rating] for rating in sorted(distribution)},
    }


def global_feedback_stats(snapshot: Snapshot, now: datetime | None = None) -> dict[str, Any]:
    now = now or utcnow()
    overall = _overall(snapshot.feedback)

    feedback_by_course = [
        {
            'courseId': course.id,
            'courseName': course.name,
            'count': rollup.count,
            'avgRating': round_rating(rollup.average),
        }
        for course, rollup in _by_popularity(_course_rollups(snapshot.feedback, snapshot.courses))[:COURSE_RANKING_LIMIT]
    ]

    recent = _since(snapshot.feedback, now - timedelta(days=RECENT_TRENDS_DAYS))
    recent_trends = [
        {'date': day, 'count': rollup.count}
        for day, rollup in _daily_rollups(recent).items()
    ]

    return {
        'totalFeedback': overall.count,
        'avgRating': round_rating(overall.average),
        'feedbackByRating': _rating_counts(snapshot.feedback),
        'feedbackByCourse': feedback_by_course,
        'recentTrends': recent_trends,
    }


def dashboard_summary(snapshot: Snapshot, now: datetime | None = None) -> dict[str, Any]:
    now = now or utcnow()
    week_start = now - timedelta(days=RECENT_ACTIVITY_DAYS)
    students = [user for user in snapshot.users if user.role == ROLE_STUDENT]
    overall = _overall(snapshot.feedback)

    # Courses need a minimum number of reviews before they can rank.
    eligible = [
        (course, rollup)
        for course, rollup in _course_rollups(snapshot.feedback, snapshot.courses)
        if rollup.count >= TOP_COURSES_MIN_FEEDBACK
    ]
    eligible.sort(key=lambda item: (-item[1].average, -item[1].count, item[0].name))
    top_courses = [
        {
            'courseId': course.id,
            'courseName': course.name,
            'avgRating': round_rating(rollup.average),
            'feedbackCount': rollup.count,
        }
        for course, rollup in eligible[:TOP_COURSES_LIMIT]
    ]

    return {
        'totalStudents': len(students),
        'totalCourses': len(snapshot.courses),
        'totalFeedback': overall.count,
        'blockedUsers': sum(1 for user in snapshot.users if user.is_blocked),
        'recentFeedback': len(_since(snapshot.feedback, week_start)),
        'recentRegistrations': len(_since(students, week_start)),
        'avgRating': round_rating(overall.average),
        'topCourses': top_courses,
    }


def validate_period(period_days: int) -> None:
    if period_days < 1 or period_days > config.ANALYTICS_MAX_PERIOD_DAYS:
        raise ValidationError(
            {'period': f'Period must be between 1 and {config.ANALYTICS_MAX_PERIOD_DAYS} days'}
        )


def analytics(snapshot: Snapshot, period_days: int, now: datetime | None = None) -> dict[str, Any]:
    validate_period(period_days)
    now = now or utcnow()
    start = now - timedelta(days=period_days)

    students = [user for user in snapshot.users if user.role == ROLE_STUDENT]
    window_feedback = _since(snapshot.feedback, start)

    user_trends = [
        {'date': day, 'count': rollup.count}
        for day, rollup in _daily_rollups(_since(students, start), with_ratings=False).items()
    ]
    feedback_trends = [
        {'date': day, 'count': rollup.count, 'avgRating': round_rating(rollup.average)}
        for day, rollup in _daily_rollups(window_feedback).items()
    ]
    course_popularity = [
        {
            'courseId': course.id,
            'courseName': course.name,
            'feedbackCount': rollup.count,
            'avgRating': round_rating(rollup.average),
        }
        for course, rollup in _by_popularity(_course_rollups(window_feedback, snapshot.courses))[:COURSE_RANKING_LIMIT]
    ]

    return {
        'period': period_days,
        'userTrends': user_trends,
        'feedbackTrends': feedback_trends,
        'coursePopularity': course_popularity,
        'ratingDistribution': _rating_counts(window_feedback),
    }


def courses_with_stats(snapshot: Snapshot) -> list[dict[str, Any]]:
    rollups: dict[int, _Rollup] = {course.id: _Rollup() for course in snapshot.courses}
    for row in snapshot.feedback:
        if row.course_id in rollups:
            rollups[row.course_id].add(row.rating)

    ordered = sorted(snapshot.courses, key=lambda course: (-rollups[course.id].count, course.name))
    return [
        {
            'id': course.id,
            'name': course.name,
            'code': course.code,
            'instructor': course.instructor,
            'credits': course.credits,
            'isActive': course.is_active,
            'createdAt': course.created_at,
            'feedbackCount': rollups[course.id].count,
            'avgRating': round_rating(rollups[course.id].average),
        }
        for course in ordered
    ]


def student_summary(feedback_rows: Sequence[Any]) -> dict[str, Any]:
    overall = _overall(feedback_rows)
    last_feedback = max((row.created_at for row in feedback_rows), default=None)
    return {
        'totalFeedback': overall.count,
        'avgRating': round_rating(overall.average),
        'lastFeedback': last_feedback,
    }


def load_snapshot(db: Session) -> Snapshot:
    return Snapshot(
        users=db.query(User).all(),
        courses=db.query(Course).all(),
        feedback=db.query(Feedback).all(),
    )


def get_course_stats(db: Session, requester: Requester, course_id: int) -> dict[str, Any]:
    require_admin(requester)
    if db.get(Course, course_id) is None:
        raise NotFoundError('Course not found')
    ratings = [rating for (rating,) in db.query(Feedback.rating).filter(Feedback.course_id == course_id).all()]
    return course_stats(ratings)


def get_global_feedback_stats(db: Session, requester: Requester, now: datetime | None = None) -> dict[str, Any]:
    require_admin(requester)
    return global_feedback_stats(load_snapshot(db), now=now)


def get_dashboard_summary(db: Session, requester: Requester, now: datetime | None = None) -> dict[str, Any]:
    require_admin(requester)
    return dashboard_summary(load_snapshot(db), now=now)


def get_analytics(
    db: Session,
    requester: Requester,
    period_days: int,
    now: datetime | None = None,
) -> dict[str, Any]:
    require_admin(requester)
    validate_period(period_days)
    return analytics(load_snapshot(db), period_days, now=now)


def get_courses_with_stats(db: Session, requester: Requester) -> list[dict[str, Any]]:
    require_admin(requester)
    return courses_with_stats(load_snapshot(db))
