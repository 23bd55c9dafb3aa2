"""Registration, sign-in and self-service profile operations."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.passwords import hash_password, verify_password
from backend.core.clock import utcnow
from backend.core.errors import ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from backend.core.requester import ROLE_ADMIN, ROLE_STUDENT, Requester
from backend.models.user import User
from backend.schemas.user import ChangePasswordRequest, LoginRequest, ProfileUpdateRequest, RegisterRequest
from backend.services.consistency import commit_or_raise, ensure_not_blocked, load_requester_user
from backend.services.storage import AvatarStore, get_avatar_store
from backend.services.validation import validate_payload

logger = logging.getLogger(__name__)


def issue_token(user: User) -> str:
    return jwt_handler.create_access_token(user.id, user.role)


def register(db: Session, name: str, email: str, password: str) -> tuple[User, str]:
    payload = validate_payload(RegisterRequest, {'name': name, 'email': email, 'password': password})

    if db.query(User).filter(User.email == payload.email).first():
        raise ConflictError('User already exists')

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=ROLE_STUDENT,
        is_blocked=False,
    )
    db.add(user)
    try:
        commit_or_raise(db, 'register user')
    except IntegrityError as exc:
        raise ConflictError('User already exists') from exc

    db.refresh(user)
    logger.info('Registered student %s', user.id)
    return user, issue_token(user)


def _authenticate(db: Session, email: str, password: str, role: str | None = None) -> User:
    payload = validate_payload(LoginRequest, {'email': email, 'password': password})
    prefix = 'Admin account' if role == ROLE_ADMIN else 'Your account'
    invalid = 'Invalid admin credentials' if role == ROLE_ADMIN else 'Invalid credentials'

    query = db.query(User).filter(User.email == payload.email)
    if role is not None:
        query = query.filter(User.role == role)
    user = query.first()

    if user is None:
        logger.warning('Login failed for unknown account')
        raise UnauthorizedError(invalid)
    if user.is_blocked:
        logger.warning('Login refused for blocked user %s', user.id)
        raise ForbiddenError(f'{prefix} has been blocked')
    if not verify_password(payload.password, user.password_hash):
        logger.warning('Login failed for user %s', user.id)
        raise UnauthorizedError(invalid)
    return user


def login(db: Session, email: str, password: str) -> tuple[User, str]:
    user = _authenticate(db, email, password)
    return user, issue_token(user)


def admin_login(db: Session, email: str, password: str) -> tuple[User, str]:
    user = _authenticate(db, email, password, role=ROLE_ADMIN)
    return user, issue_token(user)


def get_profile(db: Session, requester: Requester) -> User:
    return load_requester_user(db, requester)


def update_profile(db: Session, requester: Requester, changes: dict[str, Any]) -> User:
    """Apply the provided profile fields.

    Only keys present in ``changes`` are touched. ``phone``,
    ``date_of_birth`` and ``address`` may be cleared with ``None``; ``name``
    ignores ``None``.
    """
    payload = validate_payload(ProfileUpdateRequest, changes)
    user = load_requester_user(db, requester)
    ensure_not_blocked(user)

    updates = payload.model_dump(exclude_unset=True)
    if updates.get('name', '') is None:
        updates.pop('name')
    for field_name, value in updates.items():
        setattr(user, field_name, value)
    user.updated_at = utcnow()

    commit_or_raise(db, 'update profile')
    db.refresh(user)
    return user


def change_password(db: Session, requester: Requester, current_password: str, new_password: str) -> None:
    payload = validate_payload(
        ChangePasswordRequest,
        {'current_password': current_password, 'new_password': new_password},
    )
    user = load_requester_user(db, requester)
    ensure_not_blocked(user)

    if not verify_password(payload.current_password, user.password_hash):
        raise ValidationError({'current_password': 'Current password is incorrect'})

    user.password_hash = hash_password(payload.new_password)
    user.updated_at = utcnow()
    commit_or_raise(db, 'change password')
    logger.info('Password changed for user %s', user.id)


def replace_avatar(
    db: Session,
    requester: Requester,
    data: bytes,
    content_type: str | None,
    store: AvatarStore | None = None,
) -> str:
    store = store or get_avatar_store()
    user = load_requester_user(db, requester)
    ensure_not_blocked(user)

    new_url = store.save(data, content_type)
    previous_url = user.profile_picture_url
    user.profile_picture_url = new_url
    user.updated_at = utcnow()
    commit_or_raise(db, 'update profile picture')

    store.invalidate(previous_url)
    return new_url
