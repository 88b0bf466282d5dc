"""Identity and session credential models."""

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """Who the caller is, as asserted by a verified session credential."""

    external_id: str = Field(description="Identity-provider user id")
    display_name: str = Field(description="Provider username")
    avatar_ref: str | None = Field(default=None, description="Provider avatar hash")
    is_member: bool = Field(
        default=False, description="Community membership snapshot taken at login"
    )


class SessionClaims(BaseModel):
    """Claims carried by the signed session credential."""

    sub: str
    name: str
    avatar: str | None = None
    is_member: bool = False
    iat: int
    exp: int
    iss: str
    aud: str

    def to_identity(self) -> Identity:
        return Identity(
            external_id=self.sub,
            display_name=self.name,
            avatar_ref=self.avatar,
            is_member=self.is_member,
        )


class ProviderTokens(BaseModel):
    """Token endpoint response of the identity provider."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None


class ProviderProfile(BaseModel):
    """Subset of the provider's current-user payload the portal uses."""

    id: str
    username: str
    avatar: str | None = None
    global_name: str | None = None
