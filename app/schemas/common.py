"""
Response envelope shared by every endpoint.
"""
from pydantic import BaseModel, Field
from typing import Generic, List, Optional, TypeVar
from datetime import datetime, timezone
import math

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    success: bool
    message: str
    data: Optional[T] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def ok(cls, message: str, data: Optional[T] = None) -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str) -> "ApiResponse[T]":
        return cls(success=False, message=message, data=None)

class Page(BaseModel, Generic[T]):
    content: List[T]
    page: int
    size: int
    total_elements: int
    total_pages: int

    @classmethod
    def build(cls, content: List[T], *, page: int, size: int, total: int) -> "Page[T]":
        return cls(
            content=content,
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size) if size else 0,
        )
