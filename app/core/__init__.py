"""Core infrastructure: config, database, logging, middleware, exceptions, caller identity."""

from app.core.config import Settings, get_settings
from app.core.database import Base, get_db
from app.core.logging import caller_id_ctx, get_logger, request_id_ctx
from app.core.security import Caller, Role, get_caller

__all__ = [
    "Base",
    "Caller",
    "Role",
    "Settings",
    "caller_id_ctx",
    "get_caller",
    "get_db",
    "get_logger",
    "get_settings",
    "request_id_ctx",
]
