"""Common schemas used across the application."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

# A party reference on input: {"kind": "customer", "id": "..."} or a legacy
# "customers:<id>" string (a bare id means a paying customer)
PartyRefIn = str | dict


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response wrapper.

    Usage:
        response_model=PaginatedResponse[CustomerOut]

    Returns:
        {
            "items": [...],
            "total": 150,
            "limit": 50,
            "offset": 0
        }
    """
    items: list[T]
    total: int
    limit: int
    offset: int


class PartyRefOut(BaseModel):
    kind: str
    id: str


class DeleteResult(BaseModel):
    id: str
    result: str
