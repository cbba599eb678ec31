"""
Shared response envelope and pagination schemas.
Every endpoint answers with ``{"status": "success", "data": ..., "message": ...}``.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
import math


class PaginationMeta(BaseModel):
    """Pagination block returned next to list data."""

    current: int = Field(..., ge=1, description="Current page (1-indexed)", examples=[1])
    pages: int = Field(..., ge=0, description="Total number of pages", examples=[5])
    total: int = Field(..., ge=0, description="Total number of matching items", examples=[42])

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(current=page, pages=pages, total=total)


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    **extra: Any
) -> Dict[str, Any]:
    """
    Build the success envelope.

    Args:
        data: Payload placed under ``data`` (omitted when None)
        message: Optional human-readable message
        extra: Additional top-level keys such as ``pagination`` or ``count``
    """
    body: Dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    for key, value in extra.items():
        body[key] = value.model_dump() if isinstance(value, BaseModel) else value
    return body


def paginated_response(items: list, page: int, limit: int, total: int, **extra: Any) -> Dict[str, Any]:
    return success_response(
        data=items,
        count=len(items),
        pagination=PaginationMeta.build(page, limit, total),
        **extra
    )
