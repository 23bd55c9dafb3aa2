import pytest

from backend.core.errors import ValidationError
from backend.schemas.course import CourseCreateRequest
from backend.schemas.feedback import FeedbackCreateRequest
from backend.services.validation import collect_errors, errors_from_request, validate_pagination, validate_payload


def test_collect_errors_maps_aliases_back_to_field_names() -> None:
    errors = collect_errors(FeedbackCreateRequest, {'courseId': 'abc', 'rating': 7, 'message': 'Great course overall'})

    assert set(errors) == {'course_id', 'rating'}
    assert errors['rating'] == 'Rating must be between 1 and 5'


def test_collect_errors_is_empty_for_valid_payload() -> None:
    assert collect_errors(CourseCreateRequest, {'name': 'Compilers', 'code': 'cs450'}) == {}


def test_validate_payload_returns_normalized_model() -> None:
    payload = validate_payload(CourseCreateRequest, {'name': ' Compilers ', 'code': ' cs450 ', 'credits': 4})

    assert payload.name == 'Compilers'
    assert payload.code == 'CS450'
    assert payload.credits == 4


def test_validate_payload_reports_missing_fields() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_payload(CourseCreateRequest, {})

    assert set(exc_info.value.errors) == {'name', 'code'}
    assert exc_info.value.message == 'Validation failed'


def test_validate_pagination() -> None:
    validate_pagination(1, 100, 100)

    with pytest.raises(ValidationError) as exc_info:
        validate_pagination(0, 500, 100)

    assert exc_info.value.errors == {
        'page': 'Page must be at least 1',
        'limit': 'Limit must be between 1 and 100',
    }


def test_errors_from_request_strips_location_prefix() -> None:
    raw_errors = [
        {'type': 'missing', 'loc': ('body', 'rating'), 'msg': 'Field required'},
        {'type': 'int_parsing', 'loc': ('query', 'page'), 'msg': 'Input should be a valid integer'},
        {'type': 'missing', 'loc': ('body',), 'msg': 'Field required'},
    ]

    assert errors_from_request(raw_errors) == {
        'rating': 'Field required',
        'page': 'Input should be a valid integer',
        'non_field': 'Field required',
    }
