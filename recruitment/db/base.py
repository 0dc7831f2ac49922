"""
SQLAlchemy declarative base.

All models inherit from this Base class so their tables share one
MetaData (used by Alembic and by the test fixtures).
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass
