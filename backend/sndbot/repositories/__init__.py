"""Repository layer for database operations."""

from .admin import AdminRepository
from .registration import RegistrationRepository

__all__ = ["AdminRepository", "RegistrationRepository"]
