"""SQLAlchemy models for the MVC architecture."""

from .base import Base
from .profile import Profile  # noqa: F401
from .reference_item import ReferenceItem  # noqa: F401

__all__ = [
    "Base",
    "Profile",
    "ReferenceItem",
]
