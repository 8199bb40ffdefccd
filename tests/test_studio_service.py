"""Tests for the studio tools: variations, market reaction, factory chat, news."""

from datetime import date
from typing import Any

import pytest

from conftest import FakeGeminiClient

from drapicorn.config import GeminiSettings
from drapicorn.core.gemini import (
    GeminiError,
    GeminiResponseFormatError,
    MissingCredentialError,
)
from drapicorn.models import ChatMessage, QCReport, TechPackMeta
from drapicorn.services.studio_service import StudioService

BASE_IMAGE = "data:image/png;base64,QkFTRQ=="
META = TechPackMeta(item_name="Boxy Shirt", brand_name="Drapicorn", quantity="300")


class TestVariations:
    @pytest.mark.asyncio
    async def test_failed_variations_are_dropped(self, settings: GeminiSettings) -> None:
        def answer(**call: Any) -> Any:
            prompt = call["parts"][0]["text"]
            if "Variation 2" in prompt:
                raise GeminiError("Gemini API HTTP error: 500")
            if "Variation 3" in prompt:
                return None
            return "VAR_B64"

        service = StudioService(settings, FakeGeminiClient(image=answer))

        variations = await service.generate_variations(
            BASE_IMAGE, ["Color", "Silhouette"], intensity=3
        )

        assert len(variations) == 1
        variation = variations[0]
        assert variation.id.startswith("var-") and variation.id.endswith("-0")
        assert variation.thumbnail == "data:image/png;base64,VAR_B64"
        assert variation.title == "Variation 1: Color Focus"
        assert variation.tags == ["Color", "Silhouette"]
        assert variation.note == "AI Generated"

    @pytest.mark.asyncio
    async def test_reference_image_is_attached(self, settings: GeminiSettings) -> None:
        client = FakeGeminiClient(image="VAR_B64")
        service = StudioService(settings, client)

        variations = await service.generate_variations(
            BASE_IMAGE, ["Pattern"], intensity=5, ref_image="UkVG"
        )

        assert len(variations) == 3
        assert len(client.calls) == 3
        for call in client.calls:
            assert call["aspect_ratio"] == "3:4"
            assert len(call["parts"]) == 3
            assert "reference image" in call["parts"][0]["text"]
            assert "Creativity Intensity: 5/5." in call["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_requires_credentials(
        self, unconfigured_settings: GeminiSettings
    ) -> None:
        client = FakeGeminiClient(image="VAR_B64")
        service = StudioService(unconfigured_settings, client)

        with pytest.raises(MissingCredentialError):
            await service.generate_variations(BASE_IMAGE, ["Color"], intensity=1)
        assert client.calls == []


class TestMarketReaction:
    @pytest.mark.asyncio
    async def test_decodes_camel_case_payload(self, settings: GeminiSettings) -> None:
        payload = {
            "fundingRate": 245,
            "currentAmount": 24500000,
            "targetAmount": 10000000,
            "backers": 812,
            "chips": ["Sold out risk"],
            "feedback": {"complaint": "Pricey", "praise": "Great drape"},
            "demographics": [{"label": "Gen Z", "percent": 64}],
        }
        client = FakeGeminiClient(structured=payload)
        service = StudioService(settings, client)

        reaction = await service.simulate_market_reaction(BASE_IMAGE, META)

        assert reaction.funding_rate == 245
        assert reaction.feedback.praise == "Great drape"
        assert reaction.demographics[0].percent == 64
        assert "Boxy Shirt" in client.calls[0]["parts"][1]["text"]

    @pytest.mark.asyncio
    async def test_invalid_payload_raises_gemini_error(
        self, settings: GeminiSettings
    ) -> None:
        service = StudioService(
            settings, FakeGeminiClient(structured={"fundingRate": "lots"})
        )

        with pytest.raises(GeminiError):
            await service.simulate_market_reaction(BASE_IMAGE, META)


class TestFactoryChat:
    @pytest.mark.asyncio
    async def test_returns_model_reply(self, settings: GeminiSettings) -> None:
        client = FakeGeminiClient(text="  MOQ is 300 pcs per color.  ")
        service = StudioService(settings, client)

        reply = await service.get_factory_response(
            [ChatMessage(sender="USER", text="What is the MOQ?")], META, "EN"
        )

        assert reply == "MOQ is 300 pcs per color."
        prompt = client.calls[0]["parts"][0]["text"]
        assert "USER: What is the MOQ?" in prompt
        assert "give realistic estimates" in prompt

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "lang, expected",
        [
            ("KO", "확인했습니다. 수정 진행하겠습니다."),
            ("EN", "Received. Will proceed with corrections."),
        ],
    )
    async def test_empty_reply_falls_back(
        self, settings: GeminiSettings, lang: str, expected: str
    ) -> None:
        service = StudioService(settings, FakeGeminiClient(text=""))

        reply = await service.get_factory_response([], META, lang)

        assert reply == expected

    @pytest.mark.asyncio
    async def test_qc_report_switches_task(self, settings: GeminiSettings) -> None:
        client = FakeGeminiClient(text="네 사장님, 반영하겠습니다.")
        service = StudioService(settings, client)
        qc = ChatMessage(
            sender="USER",
            type="QC_REPORT",
            qc_data=QCReport(sample_round="2nd", corrections=["Shorten sleeve"]),
        )

        await service.get_factory_response([qc], META, "KO")

        prompt = client.calls[0]["parts"][0]["text"]
        assert "[USER SENT QC REPORT]: Round 2nd, Corrections: Shorten sleeve" in prompt
        assert "QC/CORRECTION REPORT" in prompt
        assert "Korean" in prompt


class TestFashionNews:
    @pytest.mark.asyncio
    async def test_fills_missing_fields(self, settings: GeminiSettings) -> None:
        payload = {
            "articles": [
                {"title": "Paris recap", "url": "https://www.vogue.com/article/paris"},
                {
                    "title": "Drop",
                    "summary": "Full report",
                    "source": "Hypebeast",
                    "date": "2026-01-02",
                    "thumbnail": "",
                },
            ]
        }
        client = FakeGeminiClient(structured=payload)
        service = StudioService(settings, client)

        articles = await service.get_fashion_news("EN", "EUROPE")

        first, second = articles
        assert first.source == "vogue.com"
        assert first.date == date.today().isoformat()
        assert first.summary == "No analysis available."
        assert second.source == "Hypebeast"
        assert second.date == "2026-01-02"
        assert second.thumbnail is None

        call = client.calls[0]
        assert call["tools"] == [{"google_search": {}}]
        assert "European" in call["parts"][0]["text"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload", [{"articles": None}, {"articles": "none found"}, None]
    )
    async def test_missing_article_list_returns_empty_list(
        self, settings: GeminiSettings, payload: Any
    ) -> None:
        service = StudioService(settings, FakeGeminiClient(structured=payload))

        assert await service.get_fashion_news("EN", "USA") == []

    @pytest.mark.asyncio
    async def test_malformed_url_falls_back_to_default_source(
        self, settings: GeminiSettings
    ) -> None:
        payload = {"articles": [{"title": "Runway", "url": "http://[broken/path"}]}
        service = StudioService(settings, FakeGeminiClient(structured=payload))

        articles = await service.get_fashion_news("EN", "USA")

        assert [article.source for article in articles] == ["google.com"]

    @pytest.mark.asyncio
    async def test_unparseable_response_returns_empty_list(
        self, settings: GeminiSettings
    ) -> None:
        service = StudioService(
            settings,
            FakeGeminiClient(structured=GeminiResponseFormatError("not JSON")),
        )

        assert await service.get_fashion_news("EN", "USA") == []

    @pytest.mark.asyncio
    async def test_request_errors_propagate(self, settings: GeminiSettings) -> None:
        service = StudioService(
            settings, FakeGeminiClient(structured=GeminiError("HTTP error: 503"))
        )

        with pytest.raises(GeminiError):
            await service.get_fashion_news("EN", "USA")
