"""Pydantic models for API request/response schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ── Request models ───────────────────────────────────────────────────


class ChatRequest(BaseModel):
    """A question for the oracle, optionally carrying a challenge answer."""

    model_config = ConfigDict(extra="forbid")

    message: str = Field(..., max_length=20000)
    challenge_id: str | None = Field(default=None, max_length=64)
    challenge_answer: str | int | None = Field(default=None)


class ShareCreateRequest(BaseModel):
    """A question/answer pair to publish."""

    model_config = ConfigDict(extra="forbid")

    question: str = Field(..., max_length=20000)
    answer: str = Field(..., max_length=50000)
    challenge_id: str | None = Field(default=None, max_length=64)
    challenge_answer: str | int | None = Field(default=None)


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, max_length=100)
    vote: Literal["up", "down"]


# ── Response models ──────────────────────────────────────────────────


class ChatResponse(BaseModel):
    response: str
    persona: str
    model: str


class ShareCreateResponse(BaseModel):
    id: str


class ShareResponse(BaseModel):
    question: str
    answer: str
    timestamp: float


class FeedbackCounts(BaseModel):
    up: int = 0
    down: int = 0


class HealthResponse(BaseModel):
    """System health status."""

    status: str
    llm_backend: str
    active_challenges: int
    active_shares: int
    tracked_fingerprints: int
    tor_exit_nodes: int
