from .review import (
    ControlActivated,
    CorrelationToken,
    EphemeralReply,
    InvalidCorrelationToken,
    JustificationCaptured,
    Moderator,
    OpenModal,
    ReviewAction,
    ReviewCard,
    ReviewEvent,
    ReviewOutcome,
    ReviewPhase,
    ReviewReply,
)
from .session import Identity, ProviderProfile, ProviderTokens, SessionClaims

__all__ = [
    "ControlActivated",
    "CorrelationToken",
    "EphemeralReply",
    "Identity",
    "InvalidCorrelationToken",
    "JustificationCaptured",
    "Moderator",
    "OpenModal",
    "ProviderProfile",
    "ProviderTokens",
    "ReviewAction",
    "ReviewCard",
    "ReviewEvent",
    "ReviewOutcome",
    "ReviewPhase",
    "ReviewReply",
    "SessionClaims",
]
