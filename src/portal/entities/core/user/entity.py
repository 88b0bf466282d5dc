"""User domain entity."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from src.portal.entities.core._base import Entity


class ReviewStatus(str, Enum):
    """Where a user's whitelist application stands."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class User(Entity):
    """User entity: the durable projection of an identity-provider account.

    Profile fields are refreshed on every login; the review fields are written
    by submission intake and by the review state machine.
    """

    external_id: str = Field(description="Stable identity-provider user id")
    display_name: str = Field(description="Provider username")
    avatar_ref: str | None = Field(default=None, description="Provider avatar hash")
    is_member: bool = Field(default=False, description="Member of the community guild")

    review_status: ReviewStatus = Field(default=ReviewStatus.NONE)
    review_card_id: str | None = Field(default=None, description="Message id of the open card")
    review_decision: ReviewStatus | None = Field(
        default=None, description="Committed decision of the current round"
    )
    review_moderator_id: str | None = Field(default=None)
    reviewed_at: datetime | None = Field(default=None)

    @property
    def effective_status(self) -> ReviewStatus:
        """Status as seen by callers.

        A committed decision wins over a ``pending`` status whose final write
        never happened.
        """
        if self.review_status == ReviewStatus.PENDING and self.review_decision is not None:
            return self.review_decision
        return self.review_status
