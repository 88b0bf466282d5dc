"""Translate raw interaction payloads into review events."""

from typing import Any

from src.portal.core.models.review import (
    ControlActivated,
    CorrelationToken,
    JustificationCaptured,
    Moderator,
    ReviewEvent,
)
from src.portal.core.services.chat.cards import JUSTIFICATION_INPUT_ID

PING = 1
MESSAGE_COMPONENT = 3
MODAL_SUBMIT = 5


class UnsupportedInteraction(ValueError):
    """An interaction type the review workflow does not handle."""


def _moderator(payload: dict[str, Any]) -> Moderator:
    member = payload.get("member") or {}
    user = member.get("user") or payload.get("user") or {}
    return Moderator(
        id=str(user.get("id", "")),
        display_name=str(user.get("global_name") or user.get("username") or ""),
        role_ids=tuple(str(role) for role in member.get("roles") or ()),
    )


def _text_input_value(components: list[dict[str, Any]], custom_id: str) -> str:
    for row in components or ():
        for component in row.get("components") or ():
            if component.get("custom_id") == custom_id:
                return str(component.get("value") or "")
    return ""


def parse_review_event(payload: dict[str, Any]) -> ReviewEvent:
    """Build the review event carried by a component or modal-submit interaction.

    Raises:
        InvalidCorrelationToken: The component id was not issued by this service
        UnsupportedInteraction: The interaction type is not part of the workflow
    """
    interaction_type = payload.get("type")
    data = payload.get("data") or {}
    token = CorrelationToken.parse(data.get("custom_id"))
    moderator = _moderator(payload)

    if interaction_type == MESSAGE_COMPONENT:
        message = payload.get("message") or {}
        card_id = message.get("id")
        return ControlActivated(
            action=token.action,
            subject_id=token.subject_id,
            card_id=str(card_id) if card_id else token.card_id,
            moderator=moderator,
        )

    if interaction_type == MODAL_SUBMIT:
        return JustificationCaptured(
            action=token.action,
            subject_id=token.subject_id,
            card_id=token.card_id,
            moderator=moderator,
            justification=_text_input_value(data.get("components"), JUSTIFICATION_INPUT_ID).strip(),
        )

    raise UnsupportedInteraction(f"Unsupported interaction type {interaction_type}")
