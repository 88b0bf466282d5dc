"""User entity module.

This module contains all User-related classes organized by responsibility:
- User: Domain entity (the durable projection of a provider identity)
- UserTable: Database persistence model
- UserRepository: Data access layer, including the review guard updates
"""

from .entity import ReviewStatus, User
from .repository import UserRepository
from .table import UserTable

__all__ = ["ReviewStatus", "User", "UserTable", "UserRepository"]
