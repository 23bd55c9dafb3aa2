import re
from datetime import date, datetime

from pydantic import EmailStr, field_validator

from backend.schemas.common import CamelModel
from backend.schemas.feedback import FeedbackDetailResponse

PASSWORD_PATTERN = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$')
MAX_PASSWORD_BYTES = 72
PHONE_PATTERN = re.compile(r'^\d{10}$')
PASSWORD_RULES_MESSAGE = (
    'Password must be at least 8 characters and contain at least one uppercase letter, '
    'one lowercase letter, one number, and one special character'
)


def _check_name(value: str) -> str:
    normalized = value.strip()
    if len(normalized) < 2 or len(normalized) > 50:
        raise ValueError('Name must be between 2 and 50 characters')
    return normalized


def _check_password(value: str) -> str:
    if len(value.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValueError(f'Password cannot exceed {MAX_PASSWORD_BYTES} bytes')
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(PASSWORD_RULES_MESSAGE)
    return value


class RegisterRequest(CamelModel):
    name: str
    email: EmailStr
    password: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required')
        return value


class ProfileUpdateRequest(CamelModel):
    name: str | None = None
    phone: str | None = None
    date_of_birth: date | None = None
    address: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _check_name(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not PHONE_PATTERN.match(normalized):
            raise ValueError('Phone number must be 10 digits')
        return normalized

    @field_validator('address')
    @classmethod
    def validate_address(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if len(normalized) > 200:
            raise ValueError('Address cannot exceed 200 characters')
        return normalized


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str

    @field_validator('current_password')
    @classmethod
    def validate_current_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Current password is required')
        return value

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _check_password(value)


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: str
    phone: str | None = None
    date_of_birth: date | None = None
    address: str | None = None
    profile_picture_url: str | None = None
    is_blocked: bool
    created_at: datetime


class UserListItemResponse(UserResponse):
    feedback_count: int


class AuthResponse(CamelModel):
    user: UserResponse
    token: str
    token_type: str = 'bearer'


class AvatarResponse(CamelModel):
    message: str
    profile_picture_url: str


class BlockToggleResponse(CamelModel):
    message: str
    user: UserResponse


class StudentStatsResponse(CamelModel):
    total_feedback: int
    avg_rating: float
    joined_date: datetime
    last_feedback: datetime | None = None


class UserDetailResponse(CamelModel):
    user: UserResponse
    feedback: list[FeedbackDetailResponse]
    stats: StudentStatsResponse
