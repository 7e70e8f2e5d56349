"""
Database infrastructure: async engine lifecycle, declarative base and sessions.
"""

from .connection import Base, init_database, close_database, database_health_check
from .session import get_db_session, database_session, initialize_sessions

__all__ = [
    "Base",
    "init_database",
    "close_database",
    "database_health_check",
    "get_db_session",
    "database_session",
    "initialize_sessions",
]
