"""Staff directory used for display-name joins."""

from app.features.staff.models import Staff

__all__ = ["Staff"]
