"""
Success envelope shared by the compensation endpoints.

Errors never pass through here: the handlers in app.main render them.
"""
from typing import Any, Dict, Generic, Optional, TypeVar
from pydantic import BaseModel, Field
from datetime import datetime, timezone

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    # Free-form extras such as a human-readable confirmation message
    metadata: Dict[str, Any] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def ok(cls, data: T, **metadata: Any) -> "ApiResponse[T]":
        return cls(data=data, metadata=metadata)
