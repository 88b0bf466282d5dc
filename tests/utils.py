import json
import time
from typing import Any

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from src.portal.core.models.review import CorrelationToken, ReviewAction

INTERACTION_SIGNING_KEY = Ed25519PrivateKey.from_private_bytes(bytes(range(32)))
INTERACTION_PUBLIC_KEY_HEX = (
    INTERACTION_SIGNING_KEY.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
)


def signed_headers(body: bytes, key: Ed25519PrivateKey = INTERACTION_SIGNING_KEY) -> dict[str, str]:
    timestamp = str(int(time.time()))
    signature = key.sign(timestamp.encode() + body).hex()
    return {
        "X-Signature-Ed25519": signature,
        "X-Signature-Timestamp": timestamp,
        "Content-Type": "application/json",
    }


def encode_body(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode()


def member(moderator_id: str, roles: list[str] | None = None) -> dict[str, Any]:
    return {"user": {"id": moderator_id, "username": f"mod-{moderator_id}"}, "roles": roles or []}


def button_press(
    action: ReviewAction, subject_id: str, card_id: str, moderator_id: str = "9001"
) -> dict[str, Any]:
    """Component interaction for a press on a card's Approve/Reject button."""
    return {
        "type": 3,
        "id": "interaction-1",
        "token": "interaction-token",
        "channel_id": "review-channel",
        "member": member(moderator_id),
        "message": {"id": card_id},
        "data": {
            "component_type": 2,
            "custom_id": CorrelationToken(action, subject_id).encode(),
        },
    }


def modal_submit(
    action: ReviewAction,
    subject_id: str,
    card_id: str | None,
    justification: str,
    moderator_id: str = "9001",
) -> dict[str, Any]:
    """Modal-submit interaction carrying a justification."""
    return {
        "type": 5,
        "id": "interaction-2",
        "token": "interaction-token",
        "channel_id": "review-channel",
        "member": member(moderator_id),
        "data": {
            "custom_id": CorrelationToken(action, subject_id, card_id).encode(),
            "components": [
                {
                    "type": 1,
                    "components": [
                        {"type": 4, "custom_id": "justification", "value": justification}
                    ],
                }
            ],
        },
    }
