"""Database layer - engine, base classes and types."""

from sgpc_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from sgpc_kernel.db.engine import create_tables, get_engine, get_session, session_scope
from sgpc_kernel.db.types import round_money, round_percentage, to_decimal

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "round_money",
    "round_percentage",
    "to_decimal",
]
