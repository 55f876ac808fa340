"""Shared utilities used across 3+ features."""

from app.shared.models import IdMixin, TimestampMixin, new_id
from app.shared.schemas import MessageResponse, PaginatedResponse, PaginationParams

__all__ = [
    "IdMixin",
    "MessageResponse",
    "PaginatedResponse",
    "PaginationParams",
    "TimestampMixin",
    "new_id",
]
