from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T
    message: str | None = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PaginatedResponse(CamelModel, Generic[T]):
    success: bool = True
    data: list[T]
    pagination: Pagination


class CountOut(CamelModel):
    count: int


class UpdatedOut(CamelModel):
    updated: int
