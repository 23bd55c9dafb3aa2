import re
from datetime import datetime

from pydantic import field_validator

from backend.schemas.common import CamelModel

COURSE_CODE_PATTERN = re.compile(r'^[A-Z0-9]+$')


def normalize_course_code(value: str) -> str:
    return value.strip().upper()


def _check_name(value: str) -> str:
    normalized = value.strip()
    if len(normalized) < 2 or len(normalized) > 100:
        raise ValueError('Course name must be between 2 and 100 characters')
    return normalized


def _check_code(value: str) -> str:
    normalized = normalize_course_code(value)
    if len(normalized) < 2 or len(normalized) > 20:
        raise ValueError('Course code must be between 2 and 20 characters')
    if not COURSE_CODE_PATTERN.match(normalized):
        raise ValueError('Course code must contain only letters and numbers')
    return normalized


def _check_optional_text(value: str | None, max_length: int, message: str) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if len(normalized) > max_length:
        raise ValueError(message)
    return normalized


def _check_credits(value: int | None) -> int | None:
    if value is None:
        return None
    if value < 1 or value > 10:
        raise ValueError('Credits must be between 1 and 10')
    return value


class CourseCreateRequest(CamelModel):
    name: str
    code: str
    description: str | None = None
    instructor: str | None = None
    credits: int | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator('code')
    @classmethod
    def validate_code(cls, value: str) -> str:
        return _check_code(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return _check_optional_text(value, 500, 'Description cannot exceed 500 characters')

    @field_validator('instructor')
    @classmethod
    def validate_instructor(cls, value: str | None) -> str | None:
        return _check_optional_text(value, 100, 'Instructor name cannot exceed 100 characters')

    @field_validator('credits')
    @classmethod
    def validate_credits(cls, value: int | None) -> int | None:
        return _check_credits(value)


class CourseUpdateRequest(CamelModel):
    name: str | None = None
    code: str | None = None
    description: str | None = None
    instructor: str | None = None
    credits: int | None = None
    is_active: bool | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _check_name(value)

    @field_validator('code')
    @classmethod
    def validate_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _check_code(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return _check_optional_text(value, 500, 'Description cannot exceed 500 characters')

    @field_validator('instructor')
    @classmethod
    def validate_instructor(cls, value: str | None) -> str | None:
        return _check_optional_text(value, 100, 'Instructor name cannot exceed 100 characters')

    @field_validator('credits')
    @classmethod
    def validate_credits(cls, value: int | None) -> int | None:
        return _check_credits(value)


class CourseResponse(CamelModel):
    id: int
    name: str
    code: str
    description: str | None = None
    instructor: str | None = None
    credits: int | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CourseStatsResponse(CamelModel):
    total_feedback: int
    avg_rating: float
    rating_distribution: dict[int, int]


class CourseDetailResponse(CamelModel):
    course: CourseResponse
    stats: CourseStatsResponse | None = None


class CourseWithStatsResponse(CamelModel):
    id: int
    name: str
    code: str
    instructor: str | None = None
    credits: int | None = None
    is_active: bool
    created_at: datetime
    feedback_count: int
    avg_rating: float
