"""Pydantic models used by the studio router."""

from typing import Any, Dict, List, Optional

from pydantic import Field

from drapicorn.models import (
    CamelModel,
    ChatMessage,
    GenerationResult,
    MarketReaction,
    NewsArticle,
    TechPackMeta,
    Variation,
)


class GenerationResponse(CamelModel):
    """Response model for a sketch generation request."""

    success: bool
    generated: bool = Field(
        ..., description="False when no artifact could be generated"
    )
    result: GenerationResult
    saved: bool = Field(False, description="Whether the result was persisted")
    project_id: Optional[str] = None


class ProjectListResponse(CamelModel):
    success: bool
    projects: List[Dict[str, Any]] = Field(default_factory=list)


class ProjectResponse(CamelModel):
    success: bool
    project: Dict[str, Any]


class VariationsRequest(CamelModel):
    base_image: str = Field(
        ..., min_length=1, description="Sketch as raw base64 or a data URI"
    )
    axes: List[str] = Field(..., min_length=1)
    intensity: int = Field(3, ge=1, le=5)
    ref_image: Optional[str] = None


class VariationsResponse(CamelModel):
    success: bool
    variations: List[Variation] = Field(default_factory=list)


class MarketReactionRequest(CamelModel):
    image: str = Field(
        ..., min_length=1, description="Design as raw base64 or a data URI"
    )
    meta: TechPackMeta


class MarketReactionResponse(CamelModel):
    success: bool
    reaction: MarketReaction


class FactoryChatRequest(CamelModel):
    history: List[ChatMessage] = Field(default_factory=list)
    meta: TechPackMeta
    lang: str = "EN"


class FactoryChatResponse(CamelModel):
    success: bool
    reply: str


class NewsResponse(CamelModel):
    success: bool
    articles: List[NewsArticle] = Field(default_factory=list)
