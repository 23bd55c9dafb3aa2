from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ItemT = TypeVar('ItemT')


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input and serializes camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationResponse(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class PageResponse(CamelModel, Generic[ItemT]):
    items: list[ItemT]
    pagination: PaginationResponse


class MessageResponse(CamelModel):
    message: str
