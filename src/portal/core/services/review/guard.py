"""Idempotency guard: at most one decision per subject per review round.

Check-then-set is a single atomic step in both backends, so two moderators
racing on the same card cannot both win.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.portal.core.models.review import ReviewAction
from src.portal.core.services.database.db_session import DbSessionService
from src.portal.entities.core.user.entity import ReviewStatus
from src.portal.entities.core.user.repository import UserRepository


@dataclass(frozen=True)
class GuardClaim:
    """Result of a claim: whether this caller won, and the decision that stands."""

    won: bool
    existing: ReviewAction | None = None


def _action_for(status: ReviewStatus | None) -> ReviewAction | None:
    if status is ReviewStatus.APPROVED:
        return ReviewAction.APPROVE
    if status is ReviewStatus.REJECTED:
        return ReviewAction.REJECT
    return None


class IdempotencyGuard(ABC):
    """Abstract interface for guard backends."""

    @abstractmethod
    def open_round(self, subject_id: str, card_id: str | None) -> None:
        """Start a new review round for ``subject_id``, clearing any earlier decision."""
        pass

    @abstractmethod
    def peek(self, subject_id: str) -> ReviewAction | None:
        """Return the committed decision of the current round, if any."""
        pass

    @abstractmethod
    def claim(
        self,
        subject_id: str,
        action: ReviewAction,
        moderator_id: str,
        card_id: str | None,
    ) -> GuardClaim:
        """Atomically commit ``action`` unless a decision already exists.

        When ``card_id`` is known it must match the card of the current round;
        events from an older card lose.
        """
        pass


class DatabaseIdempotencyGuard(IdempotencyGuard):
    """Guard persisted next to ``review_status`` on the users table."""

    def __init__(self, db_service: DbSessionService):
        self._db_service = db_service

    def open_round(self, subject_id: str, card_id: str | None) -> None:
        # The pending flip already cleared the decision; this records the card.
        if card_id is None:
            return
        with self._db_service.session_scope() as session:
            UserRepository(session).attach_card(subject_id, card_id)

    def peek(self, subject_id: str) -> ReviewAction | None:
        with self._db_service.session_scope() as session:
            user = UserRepository(session).get_by_external_id(subject_id)
        if user is None:
            return None
        if user.review_decision is not None:
            return _action_for(user.review_decision)
        if user.review_status in (ReviewStatus.APPROVED, ReviewStatus.REJECTED):
            return _action_for(user.review_status)
        return None

    def claim(
        self,
        subject_id: str,
        action: ReviewAction,
        moderator_id: str,
        card_id: str | None,
    ) -> GuardClaim:
        with self._db_service.session_scope() as session:
            won = UserRepository(session).claim_decision(
                subject_id, action.status, moderator_id, card_id
            )
        if won:
            return GuardClaim(won=True)
        return GuardClaim(won=False, existing=self.peek(subject_id))


class InMemoryIdempotencyGuard(IdempotencyGuard):
    """Lock-protected dict; single process only, lost on restart."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rounds: dict[str, tuple[str | None, ReviewAction | None]] = {}

    def open_round(self, subject_id: str, card_id: str | None) -> None:
        with self._lock:
            self._rounds[subject_id] = (card_id, None)

    def peek(self, subject_id: str) -> ReviewAction | None:
        with self._lock:
            _, decision = self._rounds.get(subject_id, (None, None))
        return decision

    def claim(
        self,
        subject_id: str,
        action: ReviewAction,
        moderator_id: str,
        card_id: str | None,
    ) -> GuardClaim:
        with self._lock:
            round_card_id, decision = self._rounds.get(subject_id, (None, None))
            if decision is not None:
                return GuardClaim(won=False, existing=decision)
            if card_id is not None and round_card_id is not None and card_id != round_card_id:
                return GuardClaim(won=False)
            self._rounds[subject_id] = (round_card_id or card_id, action)
        return GuardClaim(won=True)
