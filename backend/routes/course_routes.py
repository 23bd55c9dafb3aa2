from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_requester
from backend.core import config
from backend.core.requester import Requester
from backend.database import get_db
from backend.schemas.common import MessageResponse, PageResponse
from backend.schemas.course import (
    CourseCreateRequest,
    CourseDetailResponse,
    CourseResponse,
    CourseUpdateRequest,
    CourseWithStatsResponse,
)
from backend.services import aggregation, consistency, queries

router = APIRouter(tags=['courses'])


@router.get('', response_model=PageResponse[CourseResponse])
def list_courses(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=config.MAX_PAGE_SIZE),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return queries.list_courses(db, requester, page=page, limit=limit)


@router.get('/stats', response_model=list[CourseWithStatsResponse])
def list_courses_with_stats(
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return aggregation.get_courses_with_stats(db, requester)


@router.get('/{course_id}', response_model=CourseDetailResponse)
def get_course(
    course_id: int,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return queries.get_course(db, requester, course_id)


@router.post('', response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseCreateRequest,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return consistency.create_course(
        db,
        requester,
        name=data.name,
        code=data.code,
        description=data.description,
        instructor=data.instructor,
        credits=data.credits,
    )


@router.put('/{course_id}', response_model=CourseResponse)
def update_course(
    course_id: int,
    data: CourseUpdateRequest,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return consistency.update_course(db, requester, course_id, data.model_dump(exclude_unset=True))


@router.delete('/{course_id}', response_model=MessageResponse)
def delete_course(
    course_id: int,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    consistency.delete_course(db, requester, course_id)
    return MessageResponse(message='Course deleted successfully')
