"""Review workflow value types.

A review card goes ``Posted -> ActionChosen -> Resolved``. Chat events reach
the workflow only through a ``CorrelationToken`` embedded in component ids, and
leave it as a platform-neutral ``ReviewReply``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum

from src.portal.entities.core.user.entity import ReviewStatus

TOKEN_PREFIX = "wl1:"
MAX_CUSTOM_ID_LENGTH = 100


class InvalidCorrelationToken(ValueError):
    """A component id that was not produced by this service."""


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

    @property
    def status(self) -> ReviewStatus:
        return ReviewStatus.APPROVED if self is ReviewAction.APPROVE else ReviewStatus.REJECTED

    @property
    def past_tense(self) -> str:
        return "approved" if self is ReviewAction.APPROVE else "rejected"


class ReviewPhase(str, Enum):
    POSTED = "posted"
    ACTION_CHOSEN = "action_chosen"
    RESOLVED = "resolved"

    @property
    def rank(self) -> int:
        return list(ReviewPhase).index(self)

    def advance(self, target: ReviewPhase) -> ReviewPhase:
        """Move forward to ``target``; phases never move backwards."""
        if target.rank < self.rank:
            raise ValueError(f"Cannot move review from {self.value} back to {target.value}")
        return target


@dataclass(frozen=True)
class CorrelationToken:
    """``wl1:`` followed by the compact JSON triple ``[action, subject_id, card_id]``."""

    action: ReviewAction
    subject_id: str
    card_id: str | None = None

    def encode(self) -> str:
        payload = json.dumps(
            [self.action.value, self.subject_id, self.card_id], separators=(",", ":")
        )
        encoded = TOKEN_PREFIX + payload
        if len(encoded) > MAX_CUSTOM_ID_LENGTH:
            raise ValueError("Correlation token exceeds the custom id limit")
        return encoded

    @classmethod
    def parse(cls, raw: str | None) -> CorrelationToken:
        if not raw or not raw.startswith(TOKEN_PREFIX):
            raise InvalidCorrelationToken("Unknown component id")
        try:
            decoded = json.loads(raw[len(TOKEN_PREFIX):])
        except json.JSONDecodeError as e:
            raise InvalidCorrelationToken("Malformed component id") from e

        if not isinstance(decoded, list) or len(decoded) != 3:
            raise InvalidCorrelationToken("Malformed component id")
        action, subject_id, card_id = decoded
        try:
            action = ReviewAction(action)
        except ValueError as e:
            raise InvalidCorrelationToken("Unknown review action") from e
        if not isinstance(subject_id, str) or not subject_id:
            raise InvalidCorrelationToken("Missing subject id")
        if card_id is not None and (not isinstance(card_id, str) or not card_id):
            card_id = None
        return cls(action=action, subject_id=subject_id, card_id=card_id)


@dataclass
class ReviewCard:
    """In-flight view of one application; rebuilt from chat messages, never stored."""

    subject_id: str
    display_name: str
    answers: list[tuple[str, str]]
    avatar_url: str | None = None
    card_id: str | None = None
    phase: ReviewPhase = ReviewPhase.POSTED
    decision: ReviewAction | None = None
    moderator_id: str | None = None
    justification: str | None = None

    def choose(self, action: ReviewAction, moderator_id: str) -> None:
        self.phase = self.phase.advance(ReviewPhase.ACTION_CHOSEN)
        self.decision = action
        self.moderator_id = moderator_id

    def resolve(self, justification: str) -> None:
        self.phase = self.phase.advance(ReviewPhase.RESOLVED)
        self.justification = justification


@dataclass(frozen=True)
class Moderator:
    id: str
    display_name: str
    role_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ControlActivated:
    """A moderator pressed Approve or Reject on a card."""

    action: ReviewAction
    subject_id: str
    card_id: str | None
    moderator: Moderator


@dataclass(frozen=True)
class JustificationCaptured:
    """A moderator submitted the justification modal."""

    action: ReviewAction
    subject_id: str
    card_id: str | None
    moderator: Moderator
    justification: str


ReviewEvent = ControlActivated | JustificationCaptured


@dataclass(frozen=True)
class EphemeralReply:
    content: str


@dataclass(frozen=True)
class OpenModal:
    custom_id: str
    title: str
    input_label: str
    max_length: int = 1000


ReviewReply = EphemeralReply | OpenModal


@dataclass
class ReviewOutcome:
    """What dispatching one event did; the reply goes back to the moderator."""

    reply: ReviewReply
    card: ReviewCard | None = None
    committed: bool = False
    steps_failed: list[str] = field(default_factory=list)
