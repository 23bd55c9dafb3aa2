from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_requester
from backend.core import config
from backend.core.clock import utcnow
from backend.core.requester import Requester
from backend.database import get_db
from backend.schemas.common import MessageResponse, PageResponse
from backend.schemas.feedback import FeedbackCreateRequest, FeedbackDetailResponse, FeedbackResponse
from backend.services import aggregation, consistency, export, queries

router = APIRouter(tags=['feedback'])


@router.post('', response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
def create_feedback(
    data: FeedbackCreateRequest,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return consistency.create_feedback(
        db,
        requester,
        course_id=data.course_id,
        rating=data.rating,
        message=data.message,
    )


@router.get('/my-feedback', response_model=PageResponse[FeedbackDetailResponse])
def list_my_feedback(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=config.MAX_PAGE_SIZE),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return queries.list_my_feedback(db, requester, page=page, limit=limit)


@router.get('/all', response_model=PageResponse[FeedbackDetailResponse])
def list_all_feedback(
    course: int | None = Query(default=None),
    rating: int | None = Query(default=None),
    student: int | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=config.MAX_PAGE_SIZE),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return queries.list_feedback(
        db,
        requester,
        course_id=course,
        rating=rating,
        student_id=student,
        page=page,
        limit=limit,
    )


@router.get('/export')
def export_feedback(
    course: int | None = Query(default=None),
    rating: int | None = Query(default=None),
    student: int | None = Query(default=None),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    rows = queries.export_rows(db, requester, course_id=course, rating=rating, student_id=student)
    filename = export.export_filename(utcnow().date())
    return Response(
        content=export.feedback_csv(rows),
        media_type='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@router.get('/stats')
def feedback_stats(
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return aggregation.get_global_feedback_stats(db, requester)


@router.put('/{feedback_id}', response_model=FeedbackResponse)
def update_feedback(
    feedback_id: int,
    data: dict[str, Any] | None = Body(default=None),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    # Field checks run inside the service, after ownership is confirmed.
    data = data or {}
    return consistency.update_feedback(
        db,
        requester,
        feedback_id,
        rating=data.get('rating'),
        message=data.get('message'),
    )


@router.delete('/{feedback_id}', response_model=MessageResponse)
def delete_feedback(
    feedback_id: int,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    consistency.delete_feedback(db, requester, feedback_id)
    return MessageResponse(message='Feedback deleted successfully')
