from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.user import User
from backend.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from backend.services import accounts

router = APIRouter(tags=['auth'])


def _auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    user, token = accounts.register(db, name=data.name, email=data.email, password=data.password)
    return _auth_response(user, token)


@router.post('/login', response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user, token = accounts.login(db, email=data.email, password=data.password)
    return _auth_response(user, token)


@router.post('/admin-login', response_model=AuthResponse)
def admin_login(data: LoginRequest, db: Session = Depends(get_db)):
    user, token = accounts.admin_login(db, email=data.email, password=data.password)
    return _auth_response(user, token)


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
