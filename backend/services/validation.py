"""Field-level validation that runs before anything touches the store.

Each check returns (or raises with) a ``{field: message}`` map so callers can
report every offending field at once.
"""

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from backend.core import errors

ModelT = TypeVar('ModelT', bound=BaseModel)

NON_FIELD_KEY = 'non_field'


def _field_key(model_cls: type[BaseModel], location: tuple) -> str:
    if not location:
        return NON_FIELD_KEY

    alias_to_name = {
        (field.alias or name): name for name, field in model_cls.model_fields.items()
    }
    head = str(location[0])
    return alias_to_name.get(head, head)


def _error_message(error: dict[str, Any]) -> str:
    # field_validator failures arrive as "Value error, <text>"; keep only <text>.
    if error.get('type') == 'value_error' and error.get('ctx', {}).get('error') is not None:
        return str(error['ctx']['error'])
    return error['msg']


def errors_from_exception(model_cls: type[BaseModel], exc: PydanticValidationError) -> dict[str, str]:
    field_errors: dict[str, str] = {}
    for error in exc.errors(include_url=False):
        key = _field_key(model_cls, tuple(error.get('loc', ())))
        field_errors.setdefault(key, _error_message(error))
    return field_errors


def collect_errors(model_cls: type[BaseModel], data: dict[str, Any]) -> dict[str, str]:
    try:
        model_cls.model_validate(data)
    except PydanticValidationError as exc:
        return errors_from_exception(model_cls, exc)
    return {}


def validate_payload(model_cls: type[ModelT], data: dict[str, Any]) -> ModelT:
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise errors.ValidationError(errors_from_exception(model_cls, exc)) from exc


def validate_pagination(page: int, limit: int, max_limit: int) -> None:
    field_errors: dict[str, str] = {}
    if page < 1:
        field_errors['page'] = 'Page must be at least 1'
    if limit < 1 or limit > max_limit:
        field_errors['limit'] = f'Limit must be between 1 and {max_limit}'
    if field_errors:
        raise errors.ValidationError(field_errors)


def errors_from_request(raw_errors: list[dict[str, Any]]) -> dict[str, str]:
    """Flatten FastAPI request-validation errors into the same field map."""
    field_errors: dict[str, str] = {}
    for error in raw_errors:
        location = [part for part in error.get('loc', ()) if part not in ('body', 'query', 'path')]
        key = str(location[0]) if location else NON_FIELD_KEY
        field_errors.setdefault(key, _error_message(error))
    return field_errors
