"""Chat endpoint: the gated proxy in front of the LLM."""

import logging

from fastapi import APIRouter, Depends, Request

from minnebo.api.deps import get_gatekeeper, get_oracle, request_context, require_allowed_host
from minnebo.api.models import ChatRequest, ChatResponse
from minnebo.generation.oracle import Oracle
from minnebo.security.gatekeeper import Gatekeeper

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"], dependencies=[Depends(require_allowed_host)])


@router.post("", response_model=ChatResponse)
def chat(
    request: Request,
    req: ChatRequest,
    gatekeeper: Gatekeeper = Depends(get_gatekeeper),
    oracle: Oracle = Depends(get_oracle),
):
    """Answer a question in a mystic voice, behind rate limits and challenges."""
    admission = gatekeeper.admit(
        request_context(request),
        challenge_id=req.challenge_id,
        challenge_answer=req.challenge_answer,
    )
    message = gatekeeper.screen_message(req.message, admission)
    response = oracle.ask(message)
    return ChatResponse(response=response.answer, persona=response.persona, model=response.model)
