from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_requester
from backend.core import config
from backend.core.requester import Requester
from backend.database import get_db
from backend.schemas.common import MessageResponse, PageResponse
from backend.schemas.user import BlockToggleResponse, UserDetailResponse, UserListItemResponse, UserResponse
from backend.services import aggregation, consistency, queries

router = APIRouter(tags=['admin'])


@router.get('/dashboard')
def dashboard(
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return aggregation.get_dashboard_summary(db, requester)


@router.get('/analytics')
def analytics(
    period: int = Query(default=config.ANALYTICS_DEFAULT_PERIOD_DAYS),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return aggregation.get_analytics(db, requester, period)


@router.get('/users', response_model=PageResponse[UserListItemResponse])
def list_users(
    search: str | None = Query(default=None),
    blocked: bool | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=config.MAX_PAGE_SIZE),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return queries.list_users(db, requester, search=search, blocked=blocked, page=page, limit=limit)


@router.get('/users/{user_id}', response_model=UserDetailResponse)
def get_user_detail(
    user_id: int,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return queries.get_user_detail(db, requester, user_id)


@router.put('/users/{user_id}/toggle-block', response_model=BlockToggleResponse)
def toggle_user_block(
    user_id: int,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    user = consistency.toggle_user_block(db, requester, user_id)
    state = 'blocked' if user.is_blocked else 'unblocked'
    return BlockToggleResponse(message=f'User {state} successfully', user=UserResponse.model_validate(user))


@router.delete('/users/{user_id}', response_model=MessageResponse)
def delete_user(
    user_id: int,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    consistency.delete_user(db, requester, user_id)
    return MessageResponse(message='User and associated data deleted successfully')
