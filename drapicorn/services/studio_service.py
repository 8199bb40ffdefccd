"""Supplementary design-studio tools built on the Gemini client."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import date
from typing import Any, List, Optional, Sequence
from urllib.parse import urlparse

from pydantic import ValidationError

from drapicorn.config import GeminiSettings, load_gemini_settings, logger
from drapicorn.core.gemini import (
    GeminiClient,
    GeminiError,
    GeminiResponseFormatError,
    image_part,
    require_api_key,
    text_part,
)
from drapicorn.core.prompt_templates import (
    NEWS_SYSTEM_PROMPT,
    build_factory_prompt,
    build_market_reaction_prompt,
    build_news_prompt,
    build_variation_prompt,
    is_korean,
)
from drapicorn.core.response_schemas import MARKET_REACTION_SCHEMA, NEWS_SCHEMA
from drapicorn.models import (
    ChatMessage,
    MarketReaction,
    NewsArticle,
    TechPackMeta,
    Variation,
)
from drapicorn.services.generation_service import GenerativeClient, as_data_uri

VARIATION_COUNT = 3
VARIATION_ASPECT_RATIO = "3:4"
FACTORY_FALLBACK_KO = "확인했습니다. 수정 진행하겠습니다."
FACTORY_FALLBACK_EN = "Received. Will proceed with corrections."
NEWS_FALLBACK_SUMMARY = "No analysis available."


def _log(level: int, message: str, **context: Any) -> None:
    """Helper to emit structured logs with contextual metadata."""
    logger.log(level, "%s | context=%s", message, context)


def _hostname(url: str) -> str:
    try:
        host = urlparse(url or "http://google.com").hostname or "google.com"
    except ValueError:
        return "google.com"
    return host[4:] if host.startswith("www.") else host


class StudioService:
    """Variations, market simulation, factory chat and market news."""

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        client: Optional[GenerativeClient] = None,
    ) -> None:
        self.settings = settings or load_gemini_settings()
        self._client = client

    @property
    def client(self) -> GenerativeClient:
        if self._client is None:
            self._client = GeminiClient(self.settings)
        return self._client

    async def generate_variations(
        self,
        base_image: str,
        axes: Sequence[str],
        intensity: int,
        ref_image: Optional[str] = None,
    ) -> List[Variation]:
        """Generate sketch variations in parallel, dropping the ones that fail."""
        require_api_key(self.settings)

        batch_id = int(time.time() * 1000)
        results = await asyncio.gather(
            *(
                self._generate_variation(idx, base_image, axes, intensity, ref_image)
                for idx in range(VARIATION_COUNT)
            ),
            return_exceptions=True,
        )

        variations = []
        for idx, result in enumerate(results):
            if isinstance(result, Exception):
                _log(logging.ERROR, "variation_error", index=idx, error=str(result))
                continue
            if not result:
                _log(logging.WARNING, "variation_no_image", index=idx)
                continue
            variations.append(
                Variation(
                    id=f"var-{batch_id}-{idx}",
                    thumbnail=as_data_uri(result),
                    title=f"Variation {idx + 1}: {axes[0] if axes else 'Free'} Focus",
                    tags=list(axes),
                    note="AI Generated",
                )
            )

        _log(
            logging.INFO,
            "variations_complete",
            requested=VARIATION_COUNT,
            generated=len(variations),
        )
        return variations

    async def _generate_variation(
        self,
        idx: int,
        base_image: str,
        axes: Sequence[str],
        intensity: int,
        ref_image: Optional[str],
    ) -> Optional[str]:
        parts = [
            text_part(build_variation_prompt(idx, axes, intensity, bool(ref_image))),
            image_part(base_image),
        ]
        if ref_image:
            parts.append(image_part(ref_image))

        return await asyncio.wait_for(
            self.client.generate_image(
                model=self.settings.image_model,
                parts=parts,
                aspect_ratio=VARIATION_ASPECT_RATIO,
            ),
            timeout=self.settings.branch_timeout_seconds,
        )

    async def simulate_market_reaction(
        self, image: str, meta: TechPackMeta
    ) -> MarketReaction:
        require_api_key(self.settings)

        payload = await self.client.generate_structured(
            model=self.settings.text_model,
            parts=[image_part(image), text_part(build_market_reaction_prompt(meta))],
            schema=MARKET_REACTION_SCHEMA,
        )
        try:
            return MarketReaction.model_validate(payload or {})
        except ValidationError as exc:
            raise GeminiError(f"Market reaction response was invalid: {exc}") from exc

    async def get_factory_response(
        self, history: List[ChatMessage], meta: TechPackMeta, lang: str
    ) -> str:
        require_api_key(self.settings)

        reply = await self.client.generate_text(
            model=self.settings.text_model,
            parts=[text_part(build_factory_prompt(history, meta, lang))],
        )
        reply = (reply or "").strip()
        if reply:
            return reply
        return FACTORY_FALLBACK_KO if is_korean(lang) else FACTORY_FALLBACK_EN

    async def get_fashion_news(self, lang: str, region: str) -> List[NewsArticle]:
        require_api_key(self.settings)

        try:
            payload = await self.client.generate_structured(
                model=self.settings.text_model,
                parts=[text_part(build_news_prompt(lang, region))],
                schema=NEWS_SCHEMA,
                system_instruction=NEWS_SYSTEM_PROMPT,
                tools=[{"google_search": {}}],
            )
        except GeminiResponseFormatError as exc:
            _log(logging.ERROR, "news_parse_failed", region=region, error=str(exc))
            return []

        raw_articles = payload.get("articles") if isinstance(payload, dict) else None
        if not isinstance(raw_articles, list):
            raw_articles = []
        articles = []
        for raw in raw_articles:
            try:
                article = NewsArticle.model_validate(raw)
            except ValidationError as exc:
                _log(logging.WARNING, "news_article_invalid", error=str(exc))
                continue
            articles.append(
                article.model_copy(
                    update={
                        "source": article.source or _hostname(article.url),
                        "date": article.date or date.today().isoformat(),
                        "summary": article.summary or NEWS_FALLBACK_SUMMARY,
                        "thumbnail": article.thumbnail or None,
                    }
                )
            )
        return articles


__all__ = ["StudioService"]
