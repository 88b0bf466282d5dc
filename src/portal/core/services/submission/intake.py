"""Whitelist application intake."""

from collections.abc import Mapping
from typing import Any

from loguru import logger

from src.portal.core.exceptions import AlreadyPending, Forbidden, UpstreamUnavailable
from src.portal.core.models.review import ReviewCard
from src.portal.core.models.session import Identity
from src.portal.core.services.audit import AuditNotifier
from src.portal.core.services.chat.cards import avatar_url, build_review_card
from src.portal.core.services.chat.client import ChatClient, ChatError
from src.portal.core.services.database.db_session import DbSessionService
from src.portal.core.services.review.guard import IdempotencyGuard
from src.portal.entities.core.user.entity import ReviewStatus, User
from src.portal.entities.core.user.repository import UserRepository
from src.portal.runtime.config.config_data import DiscordConfig, ReviewConfig


def normalize_answers(answers: Mapping[str, Any], review_config: ReviewConfig) -> list[tuple[str, str]]:
    """Order answers by the configured questions.

    Missing or blank answers become the placeholder; unknown keys are dropped.
    """
    normalized = []
    for question in review_config.questions:
        value = answers.get(question.key)
        text = str(value).strip() if value is not None else ""
        normalized.append((question.label, text or review_config.answer_placeholder))
    return normalized


class SubmissionIntakeService:
    """Accepts an application, flips the user to pending and posts the review card.

    All-or-nothing: when the card cannot be posted the previous review state
    is restored and the caller gets ``UpstreamUnavailable``.
    """

    def __init__(
        self,
        db_service: DbSessionService,
        chat_client: ChatClient,
        guard: IdempotencyGuard,
        audit: AuditNotifier,
        discord_config: DiscordConfig,
        review_config: ReviewConfig,
    ):
        self._db_service = db_service
        self._chat = chat_client
        self._guard = guard
        self._audit = audit
        self._discord = discord_config
        self._review = review_config

    async def submit(self, identity: Identity, answers: Mapping[str, Any]) -> ReviewCard:
        """Accept ``answers`` from ``identity``.

        Raises:
            Forbidden: The credential's membership snapshot is negative
            AlreadyPending: An application is already under review
            UpstreamUnavailable: The review card could not be posted
        """
        log = logger.bind(user_id=identity.external_id)
        if not identity.is_member:
            raise Forbidden("Not a member of the community")

        with self._db_service.session_scope() as session:
            repo = UserRepository(session)
            snapshot = repo.get_by_external_id(identity.external_id)
            if snapshot is None:
                snapshot = repo.upsert_profile(
                    identity.external_id,
                    identity.display_name,
                    identity.avatar_ref,
                    identity.is_member,
                )
            # A lost conditional update means a concurrent submission flipped the row first.
            already_pending = (
                snapshot.effective_status == ReviewStatus.PENDING or not repo.mark_pending(snapshot)
            )
        if already_pending:
            log.info("Duplicate submission rejected")
            raise AlreadyPending()

        try:
            card = ReviewCard(
                subject_id=identity.external_id,
                display_name=identity.display_name,
                answers=normalize_answers(answers, self._review),
                avatar_url=avatar_url(self._discord.cdn_base_url, identity.external_id, identity.avatar_ref),
            )
            card.card_id = await self._chat.publish_message(
                self._discord.review_channel_id,
                build_review_card(card, self._review.card_title, self._review.footer_text),
            )
        except ChatError as e:
            log.error("Publishing review card failed: {}", e)
            self._restore(snapshot)
            raise UpstreamUnavailable("Review channel unavailable") from e
        except Exception:
            log.exception("Unexpected error while posting review card")
            self._restore(snapshot)
            raise

        self._guard.open_round(identity.external_id, card.card_id)
        log.info("Application submitted; review card {}", card.card_id)
        self._audit.dispatch(
            "submission",
            {"user": identity.display_name, "user_id": identity.external_id, "card": card.card_id},
        )
        return card

    def _restore(self, snapshot: User) -> None:
        with self._db_service.session_scope() as session:
            UserRepository(session).restore_review_state(snapshot)

    def status(self, identity: Identity) -> User | None:
        with self._db_service.session_scope() as session:
            return UserRepository(session).get_by_external_id(identity.external_id)
