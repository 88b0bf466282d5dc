"""Core services exports."""

# Audit
from .audit import AuditNotifier

# Chat platform
from .chat import ChatClient, ChatError, DiscordChatClient, InMemoryChatClient

# Database Service
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

# Identity provider
from .membership import MembershipVerifier
from .oauth_client_service import OAuthClientService

# Review workflow
from .review.guard import (
    DatabaseIdempotencyGuard,
    GuardClaim,
    IdempotencyGuard,
    InMemoryIdempotencyGuard,
)
from .review.state_machine import ReviewStateMachine

# Session credentials
from .session.session_issuer import SessionIssuer

# Submissions
from .submission.intake import SubmissionIntakeService

# User Services
from .user.user_management import UserManagementService

__all__ = [
    "AuditNotifier",
    "ChatClient",
    "ChatError",
    "DatabaseIdempotencyGuard",
    "DbManageService",
    "DbSessionService",
    "DiscordChatClient",
    "GuardClaim",
    "IdempotencyGuard",
    "InMemoryChatClient",
    "InMemoryIdempotencyGuard",
    "MembershipVerifier",
    "OAuthClientService",
    "ReviewStateMachine",
    "SessionIssuer",
    "SubmissionIntakeService",
    "UserManagementService",
]
