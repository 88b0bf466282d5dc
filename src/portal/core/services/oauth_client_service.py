"""OAuth2 authorization-code client for the identity provider (Discord)."""

from typing import Any
from urllib.parse import urlencode

import httpx
from loguru import logger
from pydantic import ValidationError

from src.portal.core.exceptions import UpstreamUnavailable
from src.portal.core.models.session import ProviderProfile, ProviderTokens
from src.portal.runtime.config.config_data import DiscordOAuthConfig


class OAuthClientService:
    """Talks to the provider's authorize, token and current-user endpoints.

    Args:
        config: Provider endpoints and client credentials
        http_client: Optional shared client; a short-lived one is opened per call otherwise
    """

    def __init__(self, config: DiscordOAuthConfig, http_client: httpx.AsyncClient | None = None):
        self._config = config
        self._http_client = http_client

    def authorization_url(self, state: str) -> str:
        """Build the provider authorize URL carrying ``state``."""
        query = urlencode(
            {
                "client_id": self._config.client_id,
                "response_type": "code",
                "redirect_uri": self._config.redirect_uri,
                "scope": " ".join(self._config.scopes),
                "state": state,
            }
        )
        return f"{self._config.authorization_endpoint}?{query}"

    async def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        if self._http_client is not None:
            response = await self._http_client.request(method, url, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                response = await client.request(method, url, **kwargs)
        response.raise_for_status()
        return response.json()

    async def exchange_code_for_tokens(self, code: str) -> ProviderTokens:
        """Exchange the authorization code for an access token.

        Raises:
            UpstreamUnavailable: The provider refused the code or could not be reached
        """
        token_data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._config.redirect_uri,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        try:
            payload = await self._send(
                "POST", self._config.token_endpoint, data=token_data, headers=headers
            )
            return ProviderTokens.model_validate(payload)
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.warning("Token exchange failed: {}", type(e).__name__)
            raise UpstreamUnavailable("Token exchange failed") from e

    async def get_profile(self, access_token: str) -> ProviderProfile:
        """Fetch the current user's profile.

        Raises:
            UpstreamUnavailable: The profile could not be fetched or parsed
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            payload = await self._send("GET", self._config.userinfo_endpoint, headers=headers)
            return ProviderProfile.model_validate(payload)
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.warning("Profile lookup failed: {}", type(e).__name__)
            raise UpstreamUnavailable("Profile lookup failed") from e

    async def get_groups(self, access_token: str) -> Any:
        """Return the raw payload of the current user's guild list."""
        headers = {"Authorization": f"Bearer {access_token}"}
        return await self._send("GET", self._config.groups_endpoint, headers=headers)
