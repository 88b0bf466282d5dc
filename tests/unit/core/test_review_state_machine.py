"""Unit tests for the moderation workflow."""

import asyncio

import httpx
import pytest

from src.portal.core.models.review import (
    ControlActivated,
    CorrelationToken,
    EphemeralReply,
    JustificationCaptured,
    Moderator,
    OpenModal,
    ReviewAction,
    ReviewPhase,
)
from src.portal.core.services import DiscordChatClient, InMemoryChatClient, ReviewStateMachine
from src.portal.entities.core.user.entity import ReviewStatus
from src.portal.entities.core.user.repository import UserRepository
from src.portal.runtime.config.config_data import DiscordConfig

ANSWERS = {"q1": "12345", "q2": "builder"}


def _justified(identity, card, moderator, action=ReviewAction.APPROVE, text="Looks fine"):
    return JustificationCaptured(
        action=action,
        subject_id=identity.external_id,
        card_id=card.card_id,
        moderator=moderator,
        justification=text,
    )


class UnreliableChatClient(InMemoryChatClient):
    """Publishes fine but fails to read messages back with an unexpected error."""

    async def fetch_message(self, channel_id, message_id):
        raise RuntimeError("unexpected failure")


def _user(db_service, external_id):
    with db_service.session_scope() as session:
        return UserRepository(session).get_by_external_id(external_id)


class TestControlActivated:
    """Pressing Approve or Reject."""

    @pytest.mark.asyncio
    async def test_press_opens_justification_modal_without_claiming(
        self, intake, state_machine: ReviewStateMachine, member_identity, moderator, db_guard
    ):
        card = await intake.submit(member_identity, ANSWERS)

        outcome = await state_machine.dispatch(
            ControlActivated(ReviewAction.REJECT, member_identity.external_id, card.card_id, moderator)
        )

        assert isinstance(outcome.reply, OpenModal)
        assert outcome.reply.title == "Rejection justification"
        token = CorrelationToken.parse(outcome.reply.custom_id)
        assert token == CorrelationToken(ReviewAction.REJECT, member_identity.external_id, card.card_id)
        assert outcome.card.phase is ReviewPhase.ACTION_CHOSEN
        assert outcome.committed is False
        assert db_guard.peek(member_identity.external_id) is None

    @pytest.mark.asyncio
    async def test_press_after_resolution_reports_existing_decision(
        self, intake, state_machine, member_identity, moderator, other_moderator
    ):
        card = await intake.submit(member_identity, ANSWERS)
        await state_machine.dispatch(_justified(member_identity, card, moderator))

        outcome = await state_machine.dispatch(
            ControlActivated(ReviewAction.REJECT, member_identity.external_id, card.card_id, other_moderator)
        )

        assert outcome.reply == EphemeralReply("This application was already resolved as approved.")


class TestJustificationCaptured:
    """Submitting the justification modal."""

    @pytest.mark.asyncio
    async def test_resolution_runs_every_step(
        self, intake, state_machine, member_identity, moderator, chat_client, db_service
    ):
        card = await intake.submit(member_identity, ANSWERS)

        outcome = await state_machine.dispatch(_justified(member_identity, card, moderator))

        assert outcome.committed is True
        assert outcome.steps_failed == []
        assert outcome.reply == EphemeralReply(
            f"You approved <@{member_identity.external_id}> successfully."
        )
        assert outcome.card.phase is ReviewPhase.RESOLVED

        records = chat_client.messages_in("approved-channel")
        assert len(records) == 1
        assert "Looks fine" in str(records[0]["embeds"][0]["fields"])

        (edited,) = chat_client.messages_in("review-channel")
        assert "already been approved" in edited["embeds"][0]["footer"]["text"]
        assert all(b["disabled"] for b in edited["components"][0]["components"])

        user = _user(db_service, member_identity.external_id)
        assert user.review_status is ReviewStatus.APPROVED
        assert user.review_moderator_id == moderator.id
        assert user.reviewed_at is not None

    @pytest.mark.asyncio
    async def test_two_moderators_only_first_decision_stands(
        self, intake, state_machine, member_identity, moderator, other_moderator, chat_client, db_service
    ):
        card = await intake.submit(member_identity, ANSWERS)

        first = await state_machine.dispatch(_justified(member_identity, card, moderator, ReviewAction.APPROVE))
        second = await state_machine.dispatch(
            _justified(member_identity, card, other_moderator, ReviewAction.REJECT, "No")
        )

        assert first.committed is True
        assert second.committed is False
        assert second.reply == EphemeralReply("This application was already resolved as approved.")
        assert len(chat_client.messages_in("approved-channel")) == 1
        assert chat_client.messages_in("rejected-channel") == []
        user = _user(db_service, member_identity.external_id)
        assert user.review_status is ReviewStatus.APPROVED
        assert user.review_moderator_id == moderator.id

    @pytest.mark.asyncio
    async def test_replayed_event_resolves_once(
        self, intake, state_machine, member_identity, moderator, chat_client
    ):
        card = await intake.submit(member_identity, ANSWERS)
        event = _justified(member_identity, card, moderator, ReviewAction.REJECT)

        await state_machine.dispatch(event)
        replay = await state_machine.dispatch(event)

        assert replay.committed is False
        assert replay.reply == EphemeralReply("This application was already resolved as rejected.")
        assert len(chat_client.messages_in("rejected-channel")) == 1

    @pytest.mark.asyncio
    async def test_deleted_card_still_persists_and_publishes(
        self, intake, state_machine, member_identity, moderator, chat_client, db_service
    ):
        card = await intake.submit(member_identity, ANSWERS)
        chat_client.delete_message("review-channel", card.card_id)

        outcome = await state_machine.dispatch(_justified(member_identity, card, moderator))

        assert outcome.committed is True
        assert outcome.steps_failed == ["edit_card"]
        assert len(chat_client.messages_in("approved-channel")) == 1
        assert _user(db_service, member_identity.external_id).review_status is ReviewStatus.APPROVED

    @pytest.mark.asyncio
    async def test_chat_outage_does_not_block_status(
        self, intake, state_machine, member_identity, moderator, chat_client, db_service
    ):
        card = await intake.submit(member_identity, ANSWERS)
        chat_client.fail_publish = True
        chat_client.fail_edit = True

        outcome = await state_machine.dispatch(_justified(member_identity, card, moderator))

        assert outcome.steps_failed == ["publish_record", "edit_card"]
        assert _user(db_service, member_identity.external_id).review_status is ReviewStatus.APPROVED

    @pytest.mark.asyncio
    async def test_event_for_previous_round_is_ignored(
        self, intake, state_machine, member_identity, moderator, other_moderator, db_service
    ):
        old_card = await intake.submit(member_identity, ANSWERS)
        await state_machine.dispatch(_justified(member_identity, old_card, moderator, ReviewAction.REJECT))
        await intake.submit(member_identity, ANSWERS)

        outcome = await state_machine.dispatch(
            _justified(member_identity, old_card, other_moderator, ReviewAction.APPROVE)
        )

        assert outcome.committed is False
        assert outcome.reply == EphemeralReply("This application is no longer awaiting review.")
        assert _user(db_service, member_identity.external_id).review_status is ReviewStatus.PENDING

    @pytest.mark.asyncio
    async def test_empty_justification_is_refused(self, intake, state_machine, member_identity, moderator, db_guard):
        card = await intake.submit(member_identity, ANSWERS)

        outcome = await state_machine.dispatch(_justified(member_identity, card, moderator, text=""))

        assert outcome.reply == EphemeralReply("A justification is required.")
        assert db_guard.peek(member_identity.external_id) is None

    @pytest.mark.asyncio
    async def test_justification_is_truncated(
        self, intake, state_machine, member_identity, moderator, chat_client, test_config
    ):
        card = await intake.submit(member_identity, ANSWERS)

        outcome = await state_machine.dispatch(_justified(member_identity, card, moderator, text="x" * 5000))

        assert outcome.card.justification == "x" * test_config.review.justification_max_length


    @pytest.mark.asyncio
    async def test_unexpected_chat_error_does_not_abort_resolution(
        self, intake, db_guard, db_service, audit_notifier, test_config, member_identity, moderator
    ):
        card = await intake.submit(member_identity, ANSWERS)
        chat = UnreliableChatClient()
        machine = ReviewStateMachine(
            db_guard, chat, db_service, audit_notifier, test_config.discord, test_config.review
        )

        outcome = await machine.dispatch(_justified(member_identity, card, moderator))

        assert outcome.committed is True
        assert outcome.steps_failed == ["edit_card"]
        assert outcome.reply == EphemeralReply(
            f"You approved <@{member_identity.external_id}> successfully."
        )
        assert len(chat.messages_in("approved-channel")) == 1
        assert _user(db_service, member_identity.external_id).review_status is ReviewStatus.APPROVED

    @pytest.mark.asyncio
    async def test_non_json_card_lookup_still_persists_status(
        self, intake, db_guard, db_service, audit_notifier, test_config, member_identity, moderator
    ):
        card = await intake.submit(member_identity, ANSWERS)

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"id": "777"})
            return httpx.Response(200, text="<html>maintenance</html>")

        api = "https://discord.test/api/v10"
        discord = DiscordChatClient(
            DiscordConfig(api_base_url=api, bot_token="bot-token"),
            httpx.AsyncClient(base_url=api, transport=httpx.MockTransport(handler)),
        )
        machine = ReviewStateMachine(
            db_guard, discord, db_service, audit_notifier, test_config.discord, test_config.review
        )

        outcome = await machine.dispatch(_justified(member_identity, card, moderator))

        assert outcome.steps_failed == ["edit_card"]
        user = _user(db_service, member_identity.external_id)
        assert user.review_status is ReviewStatus.APPROVED
        assert user.review_decision is ReviewStatus.APPROVED

    @pytest.mark.asyncio
    async def test_concurrent_justifications_resolve_once(
        self, intake, state_machine, member_identity, moderator, other_moderator, chat_client, db_service
    ):
        card = await intake.submit(member_identity, ANSWERS)

        outcomes = await asyncio.gather(
            state_machine.dispatch(_justified(member_identity, card, moderator, ReviewAction.APPROVE)),
            state_machine.dispatch(
                _justified(member_identity, card, other_moderator, ReviewAction.REJECT, "No")
            ),
        )

        committed = [o for o in outcomes if o.committed]
        assert len(committed) == 1
        records = chat_client.messages_in("approved-channel") + chat_client.messages_in("rejected-channel")
        assert len(records) == 1
        winner = committed[0].card.decision
        loser = next(o for o in outcomes if not o.committed)
        assert loser.reply == EphemeralReply(f"This application was already resolved as {winner.past_tense}.")
        assert _user(db_service, member_identity.external_id).review_status is winner.status

class TestModeratorRoles:
    """Configured moderator roles gate every review event."""

    @pytest.fixture
    def gated_machine(self, db_guard, chat_client, db_service, audit_notifier, test_config):
        review = test_config.review.model_copy(update={"moderator_role_ids": ["mods"]})
        return ReviewStateMachine(db_guard, chat_client, db_service, audit_notifier, test_config.discord, review)

    @pytest.mark.asyncio
    async def test_member_without_role_is_refused(self, intake, gated_machine, member_identity, moderator):
        card = await intake.submit(member_identity, ANSWERS)

        outcome = await gated_machine.dispatch(_justified(member_identity, card, moderator))

        assert outcome.reply == EphemeralReply("You are not allowed to review applications.")
        assert outcome.committed is False

    @pytest.mark.asyncio
    async def test_member_with_role_may_review(self, intake, gated_machine, member_identity):
        card = await intake.submit(member_identity, ANSWERS)
        reviewer = Moderator(id="900000000000000003", display_name="m3", role_ids=("mods",))

        outcome = await gated_machine.dispatch(_justified(member_identity, card, reviewer))

        assert outcome.committed is True
