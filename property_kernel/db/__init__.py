"""Database layer - engine and base classes."""

from property_kernel.db.base import Base, TrackedBase, UUIDString
from property_kernel.db.engine import create_tables, get_engine, get_session, session_scope

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
    "create_tables",
    "get_engine",
    "get_session",
    "session_scope",
]
