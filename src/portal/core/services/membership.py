"""Community membership check performed at login."""

import httpx
from loguru import logger

from src.portal.core.services.oauth_client_service import OAuthClientService


class MembershipVerifier:
    """Decides whether the logged-in user belongs to the community guild.

    Fail-closed: transport errors and unexpected payloads count as
    "not a member" and never interrupt the login.
    """

    def __init__(self, oauth_client: OAuthClientService):
        self._oauth_client = oauth_client

    async def is_member(self, access_token: str, target_group_id: str) -> bool:
        if not target_group_id:
            logger.warning("No community guild configured; treating user as non-member")
            return False

        try:
            groups = await self._oauth_client.get_groups(access_token)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Guild lookup failed: {}", type(e).__name__)
            return False

        if not isinstance(groups, list):
            logger.warning("Guild lookup returned {} instead of a list", type(groups).__name__)
            return False

        return any(
            isinstance(group, dict) and str(group.get("id")) == target_group_id
            for group in groups
        )
