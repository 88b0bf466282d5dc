"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEV_SESSION_SECRET = "dev-insecure-session-secret"


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5500"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(default=["GET", "POST"])
    allow_headers: list[str] = Field(default=["Content-Type", "Authorization"])


class DiscordOAuthConfig(BaseModel):
    """OAuth2 authorization-code settings for the identity provider (Discord)."""

    client_id: str = Field(default="", description="OAuth2 application client ID")
    client_secret: str = Field(default="", description="OAuth2 application client secret")
    redirect_uri: str = Field(
        default="http://localhost:8000/auth/callback",
        description="Redirect URI registered with the provider",
    )
    authorization_endpoint: str = Field(
        default="https://discord.com/oauth2/authorize",
        description="Authorization endpoint URL",
    )
    token_endpoint: str = Field(
        default="https://discord.com/api/oauth2/token",
        description="Token exchange endpoint URL",
    )
    userinfo_endpoint: str = Field(
        default="https://discord.com/api/users/@me",
        description="Current user profile endpoint URL",
    )
    groups_endpoint: str = Field(
        default="https://discord.com/api/users/@me/guilds",
        description="Current user's guilds endpoint URL",
    )
    scopes: list[str] = Field(
        default_factory=lambda: ["identify", "guilds"],
        description="Scopes requested during authentication",
    )
    timeout_seconds: float = Field(default=10.0, description="HTTP timeout for provider calls")


class DiscordConfig(BaseModel):
    """Chat platform (Discord bot) configuration."""

    api_base_url: str = Field(default="https://discord.com/api/v10")
    cdn_base_url: str = Field(default="https://cdn.discordapp.com")
    bot_token: str | None = Field(default=None, description="Bot token used for REST calls")
    public_key: str | None = Field(
        default=None, description="Hex encoded Ed25519 key used to verify interactions"
    )
    guild_id: str = Field(default="", description="Community guild required for membership")
    review_channel_id: str = Field(default="", description="Channel receiving review cards")
    approved_channel_id: str = Field(default="", description="Channel receiving approvals")
    rejected_channel_id: str = Field(default="", description="Channel receiving rejections")
    timeout_seconds: float = Field(default=10.0, description="HTTP timeout for REST calls")


class ReviewQuestion(BaseModel):
    """One fixed question of the whitelist form."""

    key: str
    label: str


def _default_questions() -> list[ReviewQuestion]:
    return [
        ReviewQuestion(key="q1", label="Roblox ID"),
        ReviewQuestion(key="q2", label="Roblox username"),
        ReviewQuestion(key="q3", label="Which country do you live in?"),
        ReviewQuestion(key="q4", label="What is your real age?"),
        ReviewQuestion(key="q5", label="Do you play on PC?"),
        ReviewQuestion(key="q6", label="Do you have a microphone?"),
    ]


class ReviewConfig(BaseModel):
    """Moderation workflow configuration."""

    guard_backend: Literal["database", "memory"] = Field(
        default="database", description="Where the idempotency guard lives"
    )
    questions: list[ReviewQuestion] = Field(default_factory=_default_questions)
    answer_placeholder: str = Field(default="-", description="Shown for empty answers")
    moderator_role_ids: list[str] = Field(
        default_factory=list,
        description="Roles allowed to resolve cards (empty = anyone who can see the card)",
    )
    card_title: str = Field(default="New whitelist application")
    footer_text: str = Field(default="Whitelist review")
    justification_max_length: int = Field(default=1000)


class AuditConfig(BaseModel):
    """Audit notifier configuration."""

    webhook_url: str | None = Field(default=None, description="Webhook receiving audit events")
    timeout_seconds: float = Field(default=5.0)
    footer_text: str = Field(default="Portal audit log")


class JWTConfig(BaseModel):
    """Session credential signing configuration."""

    algorithm: str = Field(default="HS256", description="Signing algorithm")
    gen_issuer: str = Field(default="whitelist-portal", description="Issuer claim")
    audience: str = Field(default="frontend", description="Audience claim")
    lifetime_seconds: int = Field(default=3600, description="Credential lifetime")
    clock_skew: int = Field(default=0, description="Clock skew tolerance in seconds")


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str = Field(default="", description="Log file path (empty = console only)")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./portal.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    portal_url: str = Field(
        default="http://localhost:3000/account.html",
        description="Where users land after login and logout",
    )
    session_signing_secret: str = Field(
        default=DEV_SESSION_SECRET, description="Secret for signing session credentials"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class SecurityConfig(BaseModel):
    """Cookie settings for the session and OAuth state cookies."""

    session_cookie_name: str = Field(default="portal_session")
    state_cookie_name: str = Field(default="oauth_state")
    state_cookie_max_age: int = Field(default=600, description="OAuth state lifetime")
    secure_cookies: bool = Field(default=True)
    cookie_samesite: Literal["lax", "strict", "none"] = Field(default="none")
    verify_interaction_signatures: bool = Field(
        default=True, description="Reject chat interactions without a valid signature"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(default_factory=AppConfig, description="Application configuration")
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )
    oauth: DiscordOAuthConfig = Field(
        default_factory=DiscordOAuthConfig, description="Identity provider configuration"
    )
    discord: DiscordConfig = Field(
        default_factory=DiscordConfig, description="Chat platform configuration"
    )
    review: ReviewConfig = Field(
        default_factory=ReviewConfig, description="Moderation workflow configuration"
    )
    audit: AuditConfig = Field(default_factory=AuditConfig, description="Audit configuration")
    jwt: JWTConfig = Field(default_factory=JWTConfig, description="Session JWT configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )

    def validate_runtime(self) -> None:
        """Fail fast on settings that must never reach production."""
        if self.app.environment != "production":
            return
        if self.app.session_signing_secret == DEV_SESSION_SECRET:
            raise ValueError("SESSION_SIGNING_SECRET must be configured in production")
        if not self.discord.bot_token:
            raise ValueError("DISCORD_BOT_TOKEN must be configured in production")
        if not self.discord.public_key:
            raise ValueError("DISCORD_PUBLIC_KEY must be configured in production")
        if "*" in self.app.cors.origins:
            raise ValueError(
                "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
            )
