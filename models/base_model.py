#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the library catalog.

- 24 character hexadecimal primary keys, generated on construction
- created_at / updated_at timestamps
- save() and delete() that go through the DBStorage singleton
- ActiveFlagMixin: is_active flag used as the soft delete for models that
  must be kept while other rows still point at them

Put ActiveFlagMixin FIRST in the base list so its helpers win the MRO:
    class Category(ActiveFlagMixin, BaseModel, Base): ...
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
import models

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

ID_LENGTH = 24


def new_object_id() -> str:
    """Return a fresh 24 character lowercase hexadecimal id."""
    return secrets.token_hex(ID_LENGTH // 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel:
    """Base mixin for all persistent models."""

    id = Column(String(ID_LENGTH), primary_key=True, default=new_object_id, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        for key, value in kwargs.items():
            setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = new_object_id()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"

    def save(self):
        """Stage and commit this instance."""
        models.storage.new(self)
        models.storage.save()

    def delete(self):
        """Hard delete and commit."""
        models.storage.delete(self)
        models.storage.save()


class ActiveFlagMixin:
    """
    Adds an is_active flag. deactivate() keeps the row and hides it from
    "active" listings; delete() on the model still removes it for good.
    """

    is_active = Column(Boolean, nullable=False, default=True)

    def deactivate(self):
        self.is_active = False
        self.save()

    def toggle_active(self) -> bool:
        self.is_active = not self.is_active
        self.save()
        return self.is_active
