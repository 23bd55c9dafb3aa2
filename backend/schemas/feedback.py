from datetime import datetime

from pydantic import field_validator

from backend.schemas.common import CamelModel

MIN_RATING = 1
MAX_RATING = 5
MIN_MESSAGE_LENGTH = 10
MAX_MESSAGE_LENGTH = 1000


def _check_rating(value: int) -> int:
    if value < MIN_RATING or value > MAX_RATING:
        raise ValueError(f'Rating must be between {MIN_RATING} and {MAX_RATING}')
    return value


def _check_message(value: str) -> str:
    normalized = value.strip()
    if len(normalized) < MIN_MESSAGE_LENGTH or len(normalized) > MAX_MESSAGE_LENGTH:
        raise ValueError(
            f'Feedback message must be between {MIN_MESSAGE_LENGTH} and {MAX_MESSAGE_LENGTH} characters'
        )
    return normalized


class FeedbackCreateRequest(CamelModel):
    course_id: int
    rating: int
    message: str

    @field_validator('rating')
    @classmethod
    def validate_rating(cls, value: int) -> int:
        return _check_rating(value)

    @field_validator('message')
    @classmethod
    def validate_message(cls, value: str) -> str:
        return _check_message(value)


class FeedbackUpdateRequest(CamelModel):
    rating: int | None = None
    message: str | None = None

    @field_validator('rating')
    @classmethod
    def validate_rating(cls, value: int | None) -> int | None:
        if value is None:
            return None
        return _check_rating(value)

    @field_validator('message')
    @classmethod
    def validate_message(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _check_message(value)


class FeedbackStudentSummary(CamelModel):
    id: int
    name: str
    email: str
    profile_picture_url: str | None = None


class FeedbackCourseSummary(CamelModel):
    id: int
    name: str
    code: str
    instructor: str | None = None
    credits: int | None = None


class FeedbackResponse(CamelModel):
    id: int
    student_id: int
    course_id: int
    rating: int
    message: str
    created_at: datetime
    updated_at: datetime


class FeedbackDetailResponse(CamelModel):
    id: int
    rating: int
    message: str
    created_at: datetime
    updated_at: datetime
    student: FeedbackStudentSummary | None = None
    course: FeedbackCourseSummary | None = None
