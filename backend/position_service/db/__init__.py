"""Database base, session and initialisation helpers."""

from .base import Base
from .session import Database, get_database

__all__ = ["Base", "Database", "get_database"]
