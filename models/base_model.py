#!/usr/bin/env python3
"""
Shared SQLAlchemy base for the account models.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- __repr__ that never prints secret columns
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()

# Columns that must never leave the model through repr() or logs
SECRET_FIELDS = ("password_hash", "refresh_token")


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # Ensure an id exists if caller passed none
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __repr__(self) -> str:
        fields = {
            k: v for k, v in self.__dict__.items()
            if k != "_sa_instance_state" and k not in SECRET_FIELDS
        }
        return f"[{self.__class__.__name__}] ({self.id}) {fields}"
