"""
Declarative Base
================
Shared SQLAlchemy declarative base for all ORM models.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
