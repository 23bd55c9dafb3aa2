import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.errors import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    UnexpectedError,
    ValidationError,
)
from backend.core.logging_config import configure_logging
from backend.database import Base, engine, ensure_feedback_schema
from backend.models import course, feedback, user  # noqa: F401
from backend.routes import admin_routes, auth_routes, course_routes, feedback_routes, user_routes
from backend.services.validation import errors_from_request

configure_logging()
logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: 400,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    UnexpectedError: 503,
}

app = FastAPI(title='Course Feedback API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


def error_response(exc: DomainError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in STATUS_BY_ERROR.items() if isinstance(exc, error_type)),
        500,
    )
    body = {'message': exc.message}
    if isinstance(exc, ValidationError):
        body['errors'] = exc.errors
    body.update(exc.details)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(DomainError)
def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    return error_response(exc)


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(ValidationError(errors_from_request(exc.errors())))


@app.exception_handler(SQLAlchemyError)
def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception('Unhandled database error on %s %s', request.method, request.url.path)
    return error_response(UnexpectedError())


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    Path(config.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    try:
        Base.metadata.create_all(bind=engine)
        ensure_feedback_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Course Feedback API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(user_routes.router, prefix='/users')
app.include_router(course_routes.router, prefix='/courses')
app.include_router(feedback_routes.router, prefix='/feedback')
app.include_router(admin_routes.router, prefix='/admin')
app.mount('/uploads', StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name='uploads')
