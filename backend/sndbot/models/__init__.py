"""SQLAlchemy models for the registration store."""

from __future__ import annotations

from .registration import Admin, CharacterRegistration

__all__ = [
    "Admin",
    "CharacterRegistration",
]
