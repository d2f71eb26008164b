"""Share endpoints: publish and fetch signed conversations."""

import logging

from fastapi import APIRouter, Depends, Request

from minnebo.api.deps import get_gatekeeper, get_share_store, request_context, require_allowed_host
from minnebo.api.models import ShareCreateRequest, ShareCreateResponse, ShareResponse
from minnebo.security.gatekeeper import Gatekeeper
from minnebo.sharing.store import SecureShareStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/share", tags=["share"], dependencies=[Depends(require_allowed_host)])


@router.post("", response_model=ShareCreateResponse)
def create_share(
    request: Request,
    req: ShareCreateRequest,
    gatekeeper: Gatekeeper = Depends(get_gatekeeper),
    store: SecureShareStore = Depends(get_share_store),
):
    """Store a question/answer pair and return its share id."""
    gatekeeper.admit(
        request_context(request),
        challenge_id=req.challenge_id,
        challenge_answer=req.challenge_answer,
    )
    return ShareCreateResponse(id=store.create(req.question, req.answer))


@router.get("/{share_id}", response_model=ShareResponse)
def read_share(share_id: str, store: SecureShareStore = Depends(get_share_store)):
    """Fetch a shared conversation. Expired or tampered records are deleted."""
    return ShareResponse(**store.read(share_id))
