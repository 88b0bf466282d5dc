"""User database table model."""

from datetime import datetime

from sqlmodel import Field

from src.portal.entities.core._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users.

    One row per identity-provider account, keyed by ``external_id``. The
    ``review_*`` columns double as the persisted idempotency guard.
    """

    __tablename__ = "users"

    external_id: str = Field(index=True, unique=True)
    display_name: str
    avatar_ref: str | None = None
    is_member: bool = False

    review_status: str = Field(default="none")
    review_card_id: str | None = None
    review_decision: str | None = None
    review_moderator_id: str | None = None
    reviewed_at: datetime | None = None
