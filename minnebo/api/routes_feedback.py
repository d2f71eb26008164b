"""Feedback endpoints: up/down votes on shared answers."""

from fastapi import APIRouter, Depends, Query, Request

from minnebo.api.deps import (
    get_feedback_limiter,
    get_feedback_store,
    request_context,
    require_allowed_host,
)
from minnebo.api.models import FeedbackCounts, FeedbackRequest
from minnebo.errors import RateLimited
from minnebo.security.identity import extract_client_ip
from minnebo.security.rate_limit import ClientRateLimiter
from minnebo.sharing.feedback import FeedbackStore

router = APIRouter(
    prefix="/feedback", tags=["feedback"], dependencies=[Depends(require_allowed_host)]
)


def enforce_client_limit(
    request: Request,
    limiter: ClientRateLimiter = Depends(get_feedback_limiter),
) -> None:
    decision = limiter.check(extract_client_ip(request_context(request)))
    if not decision.allowed:
        raise RateLimited("Rate limit exceeded", retry_after=decision.retry_after)


@router.post("", response_model=FeedbackCounts, dependencies=[Depends(enforce_client_limit)])
def vote(req: FeedbackRequest, store: FeedbackStore = Depends(get_feedback_store)):
    return FeedbackCounts(**store.vote(req.id, req.vote))


@router.get("", response_model=FeedbackCounts, dependencies=[Depends(enforce_client_limit)])
def counts(
    id: str = Query(..., min_length=1, max_length=100),
    store: FeedbackStore = Depends(get_feedback_store),
):
    return FeedbackCounts(**store.counts(id))
