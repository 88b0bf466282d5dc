"""Unit tests for correlation tokens, review phases and card builders."""

import json

import pytest

from src.portal.core.models.review import (
    CorrelationToken,
    InvalidCorrelationToken,
    Moderator,
    ReviewAction,
    ReviewCard,
    ReviewPhase,
)
from src.portal.core.services.chat.cards import (
    COLOR_APPROVED,
    COLOR_REJECTED,
    build_resolution_record,
    build_resolved_card,
    build_review_card,
)
from src.portal.entities.core.user.entity import ReviewStatus


class TestCorrelationToken:
    """Encoding and strict parsing of component ids."""

    def test_encode_is_prefixed_compact_json(self):
        token = CorrelationToken(ReviewAction.APPROVE, "123", "456")

        assert token.encode() == 'wl1:["approve","123","456"]'

    def test_parse_inverts_encode(self):
        token = CorrelationToken(ReviewAction.REJECT, "123", None)

        assert CorrelationToken.parse(token.encode()) == token

    def test_subject_with_delimiters_survives(self):
        token = CorrelationToken(ReviewAction.APPROVE, "user_with:colons_and_underscores", "9")

        assert CorrelationToken.parse(token.encode()).subject_id == "user_with:colons_and_underscores"

    def test_snowflake_ids_fit_custom_id_limit(self):
        token = CorrelationToken(ReviewAction.REJECT, "1" * 20, "2" * 20)

        assert len(token.encode()) <= 100

    def test_oversized_token_is_refused(self):
        with pytest.raises(ValueError):
            CorrelationToken(ReviewAction.APPROVE, "x" * 120).encode()

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "aprovar_123",
            "wl1:",
            "wl1:not-json",
            'wl1:{"action":"approve"}',
            'wl1:["approve","123"]',
            'wl1:["promote","123",null]',
            'wl1:["approve","",null]',
            'wl1:["approve",123,null]',
        ],
    )
    def test_foreign_or_malformed_ids_are_rejected(self, raw):
        with pytest.raises(InvalidCorrelationToken):
            CorrelationToken.parse(raw)

    def test_non_string_card_id_is_treated_as_unknown(self):
        token = CorrelationToken.parse('wl1:["approve","123",456]')

        assert token.card_id is None


class TestReviewPhases:
    """Phase transitions only move forward."""

    def test_action_maps_to_status(self):
        assert ReviewAction.APPROVE.status is ReviewStatus.APPROVED
        assert ReviewAction.REJECT.status is ReviewStatus.REJECTED

    def test_card_moves_forward(self):
        card = ReviewCard(subject_id="1", display_name="u", answers=[])

        card.choose(ReviewAction.APPROVE, "m1")
        card.resolve("looks good")

        assert card.phase is ReviewPhase.RESOLVED
        assert card.decision is ReviewAction.APPROVE
        assert card.justification == "looks good"

    def test_phase_never_moves_backwards(self):
        with pytest.raises(ValueError):
            ReviewPhase.RESOLVED.advance(ReviewPhase.POSTED)

    def test_resolved_card_cannot_be_chosen_again(self):
        card = ReviewCard(subject_id="1", display_name="u", answers=[])
        card.choose(ReviewAction.REJECT, "m1")
        card.resolve("no")

        with pytest.raises(ValueError):
            card.choose(ReviewAction.APPROVE, "m2")


class TestCardBuilders:
    """Chat payloads for the review card and the outcome record."""

    def test_review_card_has_answers_and_two_buttons(self):
        card = ReviewCard(
            subject_id="42",
            display_name="alice",
            answers=[("Roblox ID", "x"), ("Roblox username", "-")],
        )

        payload = build_review_card(card, "New whitelist application", "Whitelist review")

        fields = payload["embeds"][0]["fields"]
        assert {"name": "Roblox ID", "value": "x", "inline": False} in fields
        buttons = payload["components"][0]["components"]
        assert [CorrelationToken.parse(b["custom_id"]).action for b in buttons] == [
            ReviewAction.APPROVE,
            ReviewAction.REJECT,
        ]
        assert not any(b["disabled"] for b in buttons)

    def test_resolved_card_is_recolored_and_disabled(self):
        original = {"embeds": [{"title": "New whitelist application", "fields": [{"name": "a", "value": "b"}]}]}

        payload = build_resolved_card(original, "42", ReviewAction.REJECT)

        embed = payload["embeds"][0]
        assert embed["color"] == COLOR_REJECTED
        assert embed["fields"] == [{"name": "a", "value": "b"}]
        assert "rejected" in embed["footer"]["text"]
        assert all(b["disabled"] for b in payload["components"][0]["components"])
        # The original payload is left untouched.
        assert "color" not in original["embeds"][0]

    def test_resolution_record_mentions_subject_and_moderator(self):
        payload = build_resolution_record(
            "42", ReviewAction.APPROVE, Moderator(id="7", display_name="mod"), "fine"
        )

        embed = payload["embeds"][0]
        assert embed["color"] == COLOR_APPROVED
        assert json.dumps(embed["fields"]).count("<@42>") == 1
        assert {"name": "Justification", "value": "fine", "inline": False} in embed["fields"]
