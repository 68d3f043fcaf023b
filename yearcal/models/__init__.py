"""
SQLAlchemy models for Year Calendar.
"""

from yearcal.models.base import Base, BaseModel, SoftDeleteMixin, TimestampMixin
from yearcal.models.accounts import Account, GOOGLE_PROVIDER

__all__ = [
    "Base",
    "BaseModel",
    "SoftDeleteMixin",
    "TimestampMixin",
    "Account",
    "GOOGLE_PROVIDER",
]
