"""Message, embed and interaction-response builders for the review workflow."""

import copy
from datetime import UTC, datetime
from typing import Any

from src.portal.core.models.review import (
    CorrelationToken,
    EphemeralReply,
    Moderator,
    OpenModal,
    ReviewAction,
    ReviewCard,
    ReviewReply,
)

# Discord message component and interaction response constants.
ACTION_ROW = 1
BUTTON = 2
TEXT_INPUT = 4
BUTTON_SUCCESS = 3
BUTTON_DANGER = 4
TEXT_INPUT_PARAGRAPH = 2
RESPONSE_PONG = 1
RESPONSE_CHANNEL_MESSAGE = 4
RESPONSE_MODAL = 9
EPHEMERAL = 1 << 6

JUSTIFICATION_INPUT_ID = "justification"

COLOR_PENDING = 0x5865F2
COLOR_APPROVED = 0x57F287
COLOR_REJECTED = 0xED4245


def action_color(action: ReviewAction) -> int:
    return COLOR_APPROVED if action is ReviewAction.APPROVE else COLOR_REJECTED


def avatar_url(cdn_base_url: str, external_id: str, avatar_ref: str | None) -> str:
    if avatar_ref:
        return f"{cdn_base_url}/avatars/{external_id}/{avatar_ref}.png"
    return f"{cdn_base_url}/embed/avatars/0.png"


def _buttons(subject_id: str, disabled: bool = False) -> list[dict[str, Any]]:
    return [
        {
            "type": ACTION_ROW,
            "components": [
                {
                    "type": BUTTON,
                    "style": BUTTON_SUCCESS,
                    "label": "Approve",
                    "custom_id": CorrelationToken(ReviewAction.APPROVE, subject_id).encode(),
                    "disabled": disabled,
                },
                {
                    "type": BUTTON,
                    "style": BUTTON_DANGER,
                    "label": "Reject",
                    "custom_id": CorrelationToken(ReviewAction.REJECT, subject_id).encode(),
                    "disabled": disabled,
                },
            ],
        }
    ]


def build_review_card(card: ReviewCard, title: str, footer_text: str) -> dict[str, Any]:
    """The card posted to the review channel: applicant, answers, two buttons."""
    fields = [
        {"name": "User", "value": card.display_name, "inline": True},
        {"name": "User ID", "value": card.subject_id, "inline": True},
    ]
    fields.extend(
        {"name": question[:256], "value": answer[:1024], "inline": False}
        for question, answer in card.answers
    )
    embed: dict[str, Any] = {
        "title": title,
        "color": COLOR_PENDING,
        "fields": fields,
        "footer": {"text": footer_text},
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if card.avatar_url:
        embed["thumbnail"] = {"url": card.avatar_url}
    return {"embeds": [embed], "components": _buttons(card.subject_id)}


def build_resolved_card(original: dict[str, Any], subject_id: str, action: ReviewAction) -> dict[str, Any]:
    """Recolor the original card, stamp its footer and disable both buttons."""
    embeds = copy.deepcopy(original.get("embeds") or [{}])
    embed = embeds[0]
    embed["color"] = action_color(action)
    embed["footer"] = {"text": f"This application has already been {action.past_tense}"}
    return {"embeds": embeds, "components": _buttons(subject_id, disabled=True)}


def build_resolution_record(
    subject_id: str, action: ReviewAction, moderator: Moderator, justification: str
) -> dict[str, Any]:
    """The outcome message published to the approved/rejected channel."""
    return {
        "embeds": [
            {
                "title": f"Whitelist {action.past_tense}",
                "color": action_color(action),
                "fields": [
                    {"name": "User", "value": f"<@{subject_id}>", "inline": False},
                    {"name": "Moderator", "value": f"<@{moderator.id}>", "inline": False},
                    {"name": "Justification", "value": justification[:1024] or "-", "inline": False},
                ],
                "footer": {"text": f"Whitelist {action.past_tense}"},
                "timestamp": datetime.now(UTC).isoformat(),
            }
        ],
        "allowed_mentions": {"parse": []},
    }


def build_justification_modal(modal: OpenModal) -> dict[str, Any]:
    return {
        "type": RESPONSE_MODAL,
        "data": {
            "custom_id": modal.custom_id,
            "title": modal.title,
            "components": [
                {
                    "type": ACTION_ROW,
                    "components": [
                        {
                            "type": TEXT_INPUT,
                            "custom_id": JUSTIFICATION_INPUT_ID,
                            "label": modal.input_label,
                            "style": TEXT_INPUT_PARAGRAPH,
                            "required": True,
                            "max_length": modal.max_length,
                        }
                    ],
                }
            ],
        },
    }


def build_ephemeral_message(content: str) -> dict[str, Any]:
    return {
        "type": RESPONSE_CHANNEL_MESSAGE,
        "data": {"content": content, "flags": EPHEMERAL, "allowed_mentions": {"parse": []}},
    }


def build_interaction_response(reply: ReviewReply) -> dict[str, Any]:
    """Translate a workflow reply into the platform's interaction response."""
    if isinstance(reply, OpenModal):
        return build_justification_modal(reply)
    if isinstance(reply, EphemeralReply):
        return build_ephemeral_message(reply.content)
    raise TypeError(f"Unsupported reply {type(reply).__name__}")
