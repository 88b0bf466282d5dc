"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Depends, Request

from src.portal.api.http.app_data import ApplicationDependencies
from src.portal.core.models.session import Identity
from src.portal.core.services import (
    AuditNotifier,
    MembershipVerifier,
    OAuthClientService,
    ReviewStateMachine,
    SessionIssuer,
    SubmissionIntakeService,
    UserManagementService,
)
from src.portal.runtime.context import get_config


def _app_deps(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_session_issuer(request: Request) -> SessionIssuer:
    """Get the session credential issuer."""
    return _app_deps(request).session_issuer


def get_oauth_client_service(request: Request) -> OAuthClientService:
    """Get the identity provider client."""
    return _app_deps(request).oauth_client_service


def get_membership_verifier(request: Request) -> MembershipVerifier:
    return _app_deps(request).membership_verifier


def get_user_management_service(request: Request) -> UserManagementService:
    return _app_deps(request).user_management_service


def get_review_state_machine(request: Request) -> ReviewStateMachine:
    return _app_deps(request).review_state_machine


def get_submission_intake(request: Request) -> SubmissionIntakeService:
    return _app_deps(request).submission_intake


def get_audit_notifier(request: Request) -> AuditNotifier:
    return _app_deps(request).audit_notifier


def get_current_identity(
    request: Request,
    session_issuer: SessionIssuer = Depends(get_session_issuer),
) -> Identity:
    """Identity from the session cookie.

    Raises:
        Unauthenticated: No cookie
        InvalidCredential: The cookie failed verification
    """
    token = request.cookies.get(get_config().security.session_cookie_name)
    return session_issuer.verify(token)
