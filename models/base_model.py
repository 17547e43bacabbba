#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the Clean Shop API.

- Integer autoincrement primary key
- created_at / updated_at timestamps
- delete() wired to the DBStorage singleton
- SoftDeleteMixin that overrides delete() for soft-deletable models

Notes:
- Timestamps are naive UTC everywhere (see utcnow()); SQLite has no tz support,
  so comparisons against expires_at stay consistent across backends.
- SoftDelete: put the mixin FIRST in the model's bases so its delete() wins via MRO.
  Example:
    class Category(SoftDeleteMixin, BaseModel, Base): ...
"""

from __future__ import annotations

from datetime import datetime, timezone

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
# defined in models/__init__.py.
import models

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()


# Largest value an INTEGER/BIGINT column accepts
MAX_DB_INT = 2 ** 63 - 1


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id}) {self.__dict__}"

    def delete(self):
        """
        Hard delete the current instance.
        Not committed here; the caller decides when to commit.
        """
        models.storage.delete(self)


class SoftDeleteMixin:
    """
    Adds a deleted_at timestamp and overrides delete() to perform a soft delete.
    IMPORTANT: Place this mixin BEFORE BaseModel in the class base list.
    """

    deleted_at = Column(DateTime, nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self):
        """Sets deleted_at and commits."""
        self.deleted_at = utcnow()
        models.storage.new(self)
        models.storage.save()

    def delete(self):  # type: ignore[override]
        self.soft_delete()
