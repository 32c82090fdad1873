"""Pydantic schemas for proxy responses and OpenAPI docs."""

from __future__ import annotations

from pydantic import BaseModel, Field

from trendboard.models import FeedItem, RedditPost


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (same shape for every upstream failure) ---
class ErrorResponse(BaseModel):
    error: str = Field(..., description="Human-readable upstream failure message")


# --- Feeds ---
class RedditResponse(BaseModel):
    posts: list[RedditPost]


class TechmemeResponse(BaseModel):
    stories: list[FeedItem]
