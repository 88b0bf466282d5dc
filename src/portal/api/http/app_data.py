from dataclasses import dataclass

import httpx
from loguru import logger
from sqlalchemy import Engine

from src.portal.core.services import (
    AuditNotifier,
    ChatClient,
    DatabaseIdempotencyGuard,
    DbSessionService,
    DiscordChatClient,
    IdempotencyGuard,
    InMemoryChatClient,
    InMemoryIdempotencyGuard,
    MembershipVerifier,
    OAuthClientService,
    ReviewStateMachine,
    SessionIssuer,
    SubmissionIntakeService,
    UserManagementService,
)
from src.portal.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    session_issuer: SessionIssuer
    oauth_client_service: OAuthClientService
    membership_verifier: MembershipVerifier
    user_management_service: UserManagementService
    chat_client: ChatClient
    guard: IdempotencyGuard
    review_state_machine: ReviewStateMachine
    submission_intake: SubmissionIntakeService
    audit_notifier: AuditNotifier

    async def aclose(self) -> None:
        await self.audit_notifier.aclose()
        await self.chat_client.aclose()


def build_dependencies(
    config: ConfigData,
    engine: Engine | None = None,
    chat_client: ChatClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ApplicationDependencies:
    """Wire every service from ``config``; tests pass their own engine and clients."""
    database_service = DbSessionService(engine)

    if chat_client is None:
        if config.discord.bot_token:
            chat_client = DiscordChatClient(config.discord)
        else:
            logger.warning("No Discord bot token configured; review cards stay in memory")
            chat_client = InMemoryChatClient()

    guard: IdempotencyGuard
    if config.review.guard_backend == "memory":
        guard = InMemoryIdempotencyGuard()
    else:
        guard = DatabaseIdempotencyGuard(database_service)

    oauth_client_service = OAuthClientService(config.oauth, http_client)
    audit_notifier = AuditNotifier(config.audit, http_client)

    return ApplicationDependencies(
        database_service=database_service,
        session_issuer=SessionIssuer(config.app.session_signing_secret, config.jwt),
        oauth_client_service=oauth_client_service,
        membership_verifier=MembershipVerifier(oauth_client_service),
        user_management_service=UserManagementService(database_service),
        chat_client=chat_client,
        guard=guard,
        review_state_machine=ReviewStateMachine(
            guard, chat_client, database_service, audit_notifier, config.discord, config.review
        ),
        submission_intake=SubmissionIntakeService(
            database_service, chat_client, guard, audit_notifier, config.discord, config.review
        ),
        audit_notifier=audit_notifier,
    )
