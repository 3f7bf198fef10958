"""Database utilities package."""

from .base import Base, create_sqlalchemy_engine, get_engine, get_session_factory

__all__ = ["Base", "create_sqlalchemy_engine", "get_engine", "get_session_factory"]
