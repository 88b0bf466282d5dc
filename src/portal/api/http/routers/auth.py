"""Login, session and logout endpoints for the portal frontend."""

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from loguru import logger

from src.portal.api.http.deps import (
    get_audit_notifier,
    get_current_identity,
    get_membership_verifier,
    get_oauth_client_service,
    get_session_issuer,
    get_user_management_service,
)
from src.portal.core.exceptions import InvalidState, UpstreamUnavailable
from src.portal.core.models.session import Identity
from src.portal.core.security import generate_state, states_match
from src.portal.core.services import (
    AuditNotifier,
    MembershipVerifier,
    OAuthClientService,
    SessionIssuer,
    UserManagementService,
)
from src.portal.core.services.chat.cards import avatar_url
from src.portal.runtime.context import get_config

router = APIRouter(tags=["auth"])


def _cookie_settings(samesite: str | None = None) -> dict[str, Any]:
    security = get_config().security
    return {
        "httponly": True,
        "secure": security.secure_cookies,
        "samesite": samesite or security.cookie_samesite,
        "path": "/",
    }


def _clear_session_cookie(response) -> None:
    response.delete_cookie(get_config().security.session_cookie_name, **_cookie_settings())


@router.get("/auth/start")
async def start_login(
    oauth_client: OAuthClientService = Depends(get_oauth_client_service),
) -> RedirectResponse:
    """Redirect to the provider's authorize page with a fresh ``state``."""
    config = get_config()
    state = generate_state()
    response = RedirectResponse(
        url=oauth_client.authorization_url(state), status_code=status.HTTP_302_FOUND
    )
    # The callback is a top-level navigation, so Lax is enough for the state cookie.
    response.set_cookie(
        key=config.security.state_cookie_name,
        value=state,
        max_age=config.security.state_cookie_max_age,
        **_cookie_settings(samesite="lax"),
    )
    return response


@router.get("/auth/callback", response_model=None)
async def login_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    oauth_client: OAuthClientService = Depends(get_oauth_client_service),
    membership: MembershipVerifier = Depends(get_membership_verifier),
    user_management: UserManagementService = Depends(get_user_management_service),
    session_issuer: SessionIssuer = Depends(get_session_issuer),
    audit: AuditNotifier = Depends(get_audit_notifier),
) -> RedirectResponse | PlainTextResponse:
    """Complete the authorization-code flow and set the session cookie."""
    config = get_config()
    saved_state = request.cookies.get(config.security.state_cookie_name)
    if not states_match(saved_state, state):
        logger.warning("OAuth callback with mismatched state")
        raise InvalidState("Invalid state")
    if not code:
        return PlainTextResponse("Missing code", status_code=status.HTTP_400_BAD_REQUEST)

    try:
        tokens = await oauth_client.exchange_code_for_tokens(code)
        profile = await oauth_client.get_profile(tokens.access_token)
    except UpstreamUnavailable:
        response = PlainTextResponse(
            "Authentication with Discord failed.", status_code=status.HTTP_400_BAD_REQUEST
        )
        response.delete_cookie(config.security.state_cookie_name, **_cookie_settings(samesite="lax"))
        return response

    is_member = await membership.is_member(tokens.access_token, config.discord.guild_id)
    identity = Identity(
        external_id=profile.id,
        display_name=profile.username,
        avatar_ref=profile.avatar,
        is_member=is_member,
    )
    user_management.provision_user(identity)

    response = RedirectResponse(url=config.app.portal_url, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(config.security.state_cookie_name, **_cookie_settings(samesite="lax"))
    response.set_cookie(
        key=config.security.session_cookie_name,
        value=session_issuer.issue(identity),
        max_age=config.jwt.lifetime_seconds,
        **_cookie_settings(),
    )

    logger.bind(user_id=identity.external_id, is_member=is_member).info("User logged in")
    audit.dispatch(
        "login",
        {
            "user": identity.display_name,
            "id": identity.external_id,
            "member": is_member,
            "avatar_url": avatar_url(config.discord.cdn_base_url, identity.external_id, identity.avatar_ref),
        },
    )
    return response


@router.get("/session")
async def current_session(identity: Identity = Depends(get_current_identity)) -> dict[str, Any]:
    """Return the identity carried by the session cookie."""
    config = get_config()
    return {
        **identity.model_dump(),
        "avatar_url": avatar_url(config.discord.cdn_base_url, identity.external_id, identity.avatar_ref),
    }


@router.post("/logout")
async def logout() -> JSONResponse:
    """Clear the session cookie."""
    response = JSONResponse({"message": "Logged out"})
    _clear_session_cookie(response)
    return response


@router.get("/logout")
async def logout_redirect() -> RedirectResponse:
    """Clear the session cookie and go back to the portal."""
    response = RedirectResponse(url=get_config().app.portal_url, status_code=status.HTTP_302_FOUND)
    _clear_session_cookie(response)
    return response
