"""Chat platform interaction webhook driving the review workflow."""

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger

from src.portal.api.http.deps import get_review_state_machine
from src.portal.core.exceptions import InvalidSignature
from src.portal.core.models.review import InvalidCorrelationToken
from src.portal.core.security import verify_interaction_signature
from src.portal.core.services import ReviewStateMachine
from src.portal.core.services.chat.cards import (
    RESPONSE_PONG,
    build_ephemeral_message,
    build_interaction_response,
)
from src.portal.core.services.chat.interactions import (
    PING,
    UnsupportedInteraction,
    parse_review_event,
)
from src.portal.runtime.context import get_config

router = APIRouter(tags=["interactions"])


async def verified_interaction(request: Request) -> dict[str, Any]:
    """Raw interaction payload, after the signature check.

    Raises:
        InvalidSignature: Missing, malformed or wrong signature
    """
    config = get_config()
    body = await request.body()

    if config.security.verify_interaction_signatures:
        public_key = config.discord.public_key
        if not public_key or not verify_interaction_signature(
            public_key,
            request.headers.get("X-Signature-Ed25519"),
            request.headers.get("X-Signature-Timestamp"),
            body,
        ):
            logger.warning("Rejected interaction with an invalid signature")
            raise InvalidSignature()

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail="Malformed interaction body") from e
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Malformed interaction body")
    return payload


@router.post("/interactions")
async def handle_interaction(
    payload: dict[str, Any] = Depends(verified_interaction),
    state_machine: ReviewStateMachine = Depends(get_review_state_machine),
) -> dict[str, Any]:
    if payload.get("type") == PING:
        return {"type": RESPONSE_PONG}

    try:
        event = parse_review_event(payload)
    except (InvalidCorrelationToken, UnsupportedInteraction) as e:
        logger.warning("Unprocessable interaction: {}", e)
        return build_ephemeral_message("This interaction could not be processed.")

    outcome = await state_machine.dispatch(event)
    return build_interaction_response(outcome.reply)
