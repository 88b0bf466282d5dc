"""Moderation workflow driven by chat interaction events."""

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from src.portal.core.models.review import (
    ControlActivated,
    CorrelationToken,
    EphemeralReply,
    JustificationCaptured,
    Moderator,
    OpenModal,
    ReviewAction,
    ReviewCard,
    ReviewEvent,
    ReviewOutcome,
)
from src.portal.core.services.audit import AuditNotifier
from src.portal.core.services.chat.cards import build_resolution_record, build_resolved_card
from src.portal.core.services.chat.client import ChatClient, ChatError
from src.portal.core.services.database.db_session import DbSessionService
from src.portal.core.services.review.guard import IdempotencyGuard
from src.portal.entities.core.user.repository import UserRepository
from src.portal.runtime.config.config_data import DiscordConfig, ReviewConfig


def already_resolved(action: ReviewAction) -> EphemeralReply:
    return EphemeralReply(f"This application was already resolved as {action.past_tense}.")


class ReviewStateMachine:
    """Single dispatcher for ``ControlActivated`` and ``JustificationCaptured``.

    Pressing a control only opens the justification modal; the guard is
    claimed when the justification arrives. After a won claim every side
    effect is attempted in order and a failing one never stops the next.
    """

    def __init__(
        self,
        guard: IdempotencyGuard,
        chat_client: ChatClient,
        db_service: DbSessionService,
        audit: AuditNotifier,
        discord_config: DiscordConfig,
        review_config: ReviewConfig,
    ):
        self._guard = guard
        self._chat = chat_client
        self._db_service = db_service
        self._audit = audit
        self._discord = discord_config
        self._review = review_config

    async def dispatch(self, event: ReviewEvent) -> ReviewOutcome:
        log = logger.bind(
            subject_id=event.subject_id,
            card_id=event.card_id,
            moderator_id=event.moderator.id,
            action=event.action.value,
        )
        if not self._is_moderator(event.moderator):
            log.warning("Review event from a member without a moderator role")
            return ReviewOutcome(reply=EphemeralReply("You are not allowed to review applications."))

        if isinstance(event, ControlActivated):
            return self._on_control_activated(event)
        if isinstance(event, JustificationCaptured):
            return await self._on_justification_captured(event)
        raise TypeError(f"Unsupported review event {type(event).__name__}")

    def _is_moderator(self, moderator: Moderator) -> bool:
        allowed = set(self._review.moderator_role_ids)
        return not allowed or bool(allowed.intersection(moderator.role_ids))

    def _card_for(self, event: ReviewEvent) -> ReviewCard:
        return ReviewCard(subject_id=event.subject_id, display_name="", answers=[], card_id=event.card_id)

    def _on_control_activated(self, event: ControlActivated) -> ReviewOutcome:
        existing = self._guard.peek(event.subject_id)
        if existing is not None:
            return ReviewOutcome(reply=already_resolved(existing))

        card = self._card_for(event)
        card.choose(event.action, event.moderator.id)
        title = "Approval justification" if event.action is ReviewAction.APPROVE else "Rejection justification"
        modal = OpenModal(
            custom_id=CorrelationToken(event.action, event.subject_id, event.card_id).encode(),
            title=title,
            input_label="Reason",
            max_length=self._review.justification_max_length,
        )
        return ReviewOutcome(reply=modal, card=card)

    async def _on_justification_captured(self, event: JustificationCaptured) -> ReviewOutcome:
        log = logger.bind(subject_id=event.subject_id, card_id=event.card_id, moderator_id=event.moderator.id)
        justification = event.justification[: self._review.justification_max_length]
        if not justification:
            return ReviewOutcome(reply=EphemeralReply("A justification is required."))

        # a. The claim is the commit point; nothing below can undo it.
        claim = self._guard.claim(event.subject_id, event.action, event.moderator.id, event.card_id)
        if not claim.won:
            if claim.existing is not None:
                return ReviewOutcome(reply=already_resolved(claim.existing))
            log.info("Stale review event ignored")
            return ReviewOutcome(reply=EphemeralReply("This application is no longer awaiting review."))

        card = self._card_for(event)
        card.choose(event.action, event.moderator.id)
        outcome = ReviewOutcome(reply=EphemeralReply(""), card=card, committed=True)
        log.info("Review decision committed: {}", event.action.value)

        await self._publish_record(event, justification, outcome)
        await self._edit_card(event, outcome)

        outcome.reply = EphemeralReply(
            f"You {event.action.past_tense} <@{event.subject_id}> successfully."
        )

        self._persist_status(event, outcome)
        card.resolve(justification)

        self._audit.dispatch(
            "resolution",
            {
                "user": f"<@{event.subject_id}>",
                "decision": event.action.past_tense,
                "moderator": f"<@{event.moderator.id}>",
                "justification": justification,
            },
        )
        return outcome

    async def _publish_record(
        self, event: JustificationCaptured, justification: str, outcome: ReviewOutcome
    ) -> None:
        channel_id = (
            self._discord.approved_channel_id
            if event.action is ReviewAction.APPROVE
            else self._discord.rejected_channel_id
        )
        if not channel_id:
            logger.warning("No {} channel configured; outcome record skipped", event.action.past_tense)
            outcome.steps_failed.append("publish_record")
            return
        try:
            await self._chat.publish_message(
                channel_id,
                build_resolution_record(event.subject_id, event.action, event.moderator, justification),
            )
        except ChatError as e:
            logger.bind(subject_id=event.subject_id).error("Publishing outcome record failed: {}", e)
            outcome.steps_failed.append("publish_record")
        except Exception:
            logger.bind(subject_id=event.subject_id).exception("Unexpected error publishing outcome record")
            outcome.steps_failed.append("publish_record")

    async def _edit_card(self, event: JustificationCaptured, outcome: ReviewOutcome) -> None:
        log = logger.bind(subject_id=event.subject_id, card_id=event.card_id)
        if event.card_id is None:
            log.warning("Card id unknown; original card left untouched")
            outcome.steps_failed.append("edit_card")
            return
        try:
            original = await self._chat.fetch_message(self._discord.review_channel_id, event.card_id)
            if original is None:
                log.warning("Original card not found (deleted?); edit skipped")
                outcome.steps_failed.append("edit_card")
                return
            await self._chat.edit_message(
                self._discord.review_channel_id,
                event.card_id,
                build_resolved_card(original, event.subject_id, event.action),
            )
        except ChatError as e:
            log.error("Editing the original card failed: {}", e)
            outcome.steps_failed.append("edit_card")
        except Exception:
            log.exception("Unexpected error editing the original card")
            outcome.steps_failed.append("edit_card")

    def _persist_status(self, event: JustificationCaptured, outcome: ReviewOutcome) -> None:
        try:
            with self._db_service.session_scope() as session:
                recorded = UserRepository(session).record_resolution(
                    event.subject_id, event.action.status, event.moderator.id
                )
        except SQLAlchemyError as e:
            logger.bind(subject_id=event.subject_id).error("Persisting review status failed: {}", e)
            outcome.steps_failed.append("persist_status")
            return
        if not recorded:
            logger.bind(subject_id=event.subject_id).warning("No pending user row to resolve")
            outcome.steps_failed.append("persist_status")
