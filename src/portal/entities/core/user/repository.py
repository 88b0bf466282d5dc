"""Data access layer for users."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from src.portal.entities.core.user.entity import ReviewStatus, User
from src.portal.entities.core.user.table import UserTable


class UserRepository:
    """Data-access layer for users.

    Conditional updates go through the session's connection so callers get a
    reliable ``rowcount``; that is what makes the review guard atomic.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, external_id: str) -> UserTable | None:
        statement = (
            select(UserTable)
            .where(UserTable.external_id == external_id)
            .execution_options(populate_existing=True)
        )
        return self._session.exec(statement).first()

    def _update(self, external_id: str, *conditions: Any, **values: Any) -> int:
        statement = (
            update(UserTable)
            .where(UserTable.external_id == external_id, *conditions)
            .values(updated_at=datetime.now(UTC), **values)
        )
        result = self._session.connection().execute(statement)
        return result.rowcount

    def get_by_external_id(self, external_id: str) -> User | None:
        row = self._row(external_id)
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def upsert_profile(
        self,
        external_id: str,
        display_name: str,
        avatar_ref: str | None,
        is_member: bool,
    ) -> User:
        """Create the user on first login, refresh the profile afterwards."""
        row = self._row(external_id)
        if row is None:
            row = UserTable(
                external_id=external_id,
                display_name=display_name,
                avatar_ref=avatar_ref,
                is_member=is_member,
            )
            self._session.add(row)
            try:
                self._session.flush()
            except IntegrityError:
                # Lost a race with a concurrent first login; fall through to the update.
                self._session.rollback()
                row = self._row(external_id)
                if row is None:
                    raise
            else:
                return User.model_validate(row, from_attributes=True)

        row.display_name = display_name
        row.avatar_ref = avatar_ref
        row.is_member = is_member
        row.updated_at = datetime.now(UTC)
        self._session.add(row)
        self._session.flush()
        return User.model_validate(row, from_attributes=True)

    def mark_pending(self, user: User) -> bool:
        """Flip ``user`` to pending if nobody changed its review state meanwhile.

        Returns:
            True when this call performed the flip
        """
        if user.review_decision is None:
            same_decision = UserTable.review_decision.is_(None)
        else:
            same_decision = UserTable.review_decision == user.review_decision.value
        rowcount = self._update(
            user.external_id,
            UserTable.review_status == user.review_status.value,
            same_decision,
            review_status=ReviewStatus.PENDING.value,
            review_card_id=None,
            review_decision=None,
            review_moderator_id=None,
            reviewed_at=None,
        )
        return rowcount == 1

    def restore_review_state(self, snapshot: User) -> None:
        """Put back the review columns captured in ``snapshot``."""
        self._update(
            snapshot.external_id,
            UserTable.review_status == ReviewStatus.PENDING.value,
            UserTable.review_card_id.is_(None),
            review_status=snapshot.review_status.value,
            review_card_id=snapshot.review_card_id,
            review_decision=snapshot.review_decision.value if snapshot.review_decision else None,
            review_moderator_id=snapshot.review_moderator_id,
            reviewed_at=snapshot.reviewed_at,
        )

    def attach_card(self, external_id: str, card_id: str) -> None:
        self._update(
            external_id,
            UserTable.review_status == ReviewStatus.PENDING.value,
            UserTable.review_decision.is_(None),
            review_card_id=card_id,
        )

    def claim_decision(
        self,
        external_id: str,
        decision: ReviewStatus,
        moderator_id: str,
        card_id: str | None,
    ) -> bool:
        """Compare-and-set the decision of the current review round.

        Succeeds only while the user is pending with no committed decision and,
        when ``card_id`` is known, only for the card of the current round.
        """
        conditions: list[Any] = [
            UserTable.review_status == ReviewStatus.PENDING.value,
            UserTable.review_decision.is_(None),
        ]
        if card_id is not None:
            conditions.append(
                or_(UserTable.review_card_id.is_(None), UserTable.review_card_id == card_id)
            )
        rowcount = self._update(
            external_id,
            *conditions,
            review_decision=decision.value,
            review_moderator_id=moderator_id,
        )
        return rowcount == 1

    def record_resolution(
        self, external_id: str, decision: ReviewStatus, moderator_id: str
    ) -> bool:
        """Persist the terminal status of the current review round."""
        rowcount = self._update(
            external_id,
            UserTable.review_status == ReviewStatus.PENDING.value,
            or_(
                UserTable.review_decision.is_(None),
                UserTable.review_decision == decision.value,
            ),
            review_status=decision.value,
            review_decision=decision.value,
            review_moderator_id=moderator_id,
            reviewed_at=datetime.now(UTC),
        )
        return rowcount == 1
