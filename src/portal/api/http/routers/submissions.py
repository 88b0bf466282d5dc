"""Whitelist application endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.portal.api.http.deps import get_current_identity, get_submission_intake
from src.portal.core.models.session import Identity
from src.portal.core.services import SubmissionIntakeService
from src.portal.entities.core.user.entity import ReviewStatus

router = APIRouter(prefix="/submissions", tags=["submissions"])


class SubmissionRequest(BaseModel):
    """Answers keyed by question key (``q1`` .. ``q6``)."""

    answers: dict[str, Any] = Field(default_factory=dict)


class SubmissionAccepted(BaseModel):
    status: ReviewStatus
    card_id: str | None = None


class SubmissionStatus(BaseModel):
    review_status: ReviewStatus
    decided_by: str | None = None
    reviewed_at: str | None = None


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def submit_application(
    payload: SubmissionRequest,
    identity: Identity = Depends(get_current_identity),
    intake: SubmissionIntakeService = Depends(get_submission_intake),
) -> SubmissionAccepted:
    card = await intake.submit(identity, payload.answers)
    return SubmissionAccepted(status=ReviewStatus.PENDING, card_id=card.card_id)


@router.get("/status")
async def submission_status(
    identity: Identity = Depends(get_current_identity),
    intake: SubmissionIntakeService = Depends(get_submission_intake),
) -> SubmissionStatus:
    user = intake.status(identity)
    if user is None:
        return SubmissionStatus(review_status=ReviewStatus.NONE)

    review_status = user.effective_status
    if review_status in (ReviewStatus.APPROVED, ReviewStatus.REJECTED):
        return SubmissionStatus(
            review_status=review_status,
            decided_by=user.review_moderator_id,
            reviewed_at=user.reviewed_at.isoformat() if user.reviewed_at else None,
        )
    return SubmissionStatus(review_status=review_status)
