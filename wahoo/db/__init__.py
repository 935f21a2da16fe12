"""Database module."""

from wahoo.db.base import Base
from wahoo.db.session import create_engine, create_session_maker

__all__ = ["Base", "create_engine", "create_session_maker"]
