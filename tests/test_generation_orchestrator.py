"""Tests for GenerationOrchestrator fan-out against a fake Gemini client."""

import asyncio
from typing import Any

import pytest

from conftest import TECHPACK_PAYLOAD, FakeGeminiClient, delayed, image_by_aspect

from drapicorn.config import GeminiSettings
from drapicorn.core.gemini import GeminiError, MissingCredentialError
from drapicorn.models import (
    GenerationRequest,
    ItemType,
    PreviewOptions,
    TaskAction,
    TechPackMeta,
    ToolType,
)
from drapicorn.services.generation_service import (
    BranchFailure,
    BranchKind,
    BranchSuccess,
    FailureReason,
    GenerationOrchestrator,
    select_branches,
)

SKETCH = "data:image/png;base64,U0tFVENI"


def _request(tool: Any, **overrides: Any) -> GenerationRequest:
    fields = {
        "tool": tool,
        "image": SKETCH,
        "options": PreviewOptions(item_type=ItemType.TOP, lang="EN", fit="Oversized"),
        "meta": TechPackMeta(item_name="Boxy Shirt", style_no="SS25-001"),
    }
    fields.update(overrides)
    return GenerationRequest(**fields)


@pytest.mark.asyncio
async def test_ai_pack_with_all_branches_succeeding(settings: GeminiSettings) -> None:
    client = FakeGeminiClient(structured=TECHPACK_PAYLOAD, image=image_by_aspect)
    orchestrator = GenerationOrchestrator(settings, client)

    result = await orchestrator.process_fashion_task(_request(ToolType.AI_PACK))

    assert result.flat_sketch == "data:image/png;base64,FLAT_B64"
    assert result.styled_photo == "data:image/png;base64,PHOTO_B64"
    assert result.tech_pack is not None
    assert result.text.splitlines()[0] == (
        "[TOP] Boxy Shirt | Main Fabric: Cotton twill | Construction: Single needle 12 SPI"
    )
    assert result.message == "Complete"
    assert sorted(call["method"] for call in client.calls) == [
        "image",
        "image",
        "structured",
    ]


@pytest.mark.asyncio
async def test_pro_techpack_with_invalid_document(settings: GeminiSettings) -> None:
    client = FakeGeminiClient(structured={"docs": "garbled"}, image=image_by_aspect)
    orchestrator = GenerationOrchestrator(settings, client)

    result = await orchestrator.process_fashion_task(_request(ToolType.PRO_TECHPACK))

    assert result.tech_pack is None
    assert result.text is None
    assert result.flat_sketch is None
    assert result.styled_photo is None
    assert result.generated is False
    assert [call["method"] for call in client.calls] == ["structured"]


@pytest.mark.asyncio
async def test_fit_preview_without_credentials_fails_before_any_call(
    unconfigured_settings: GeminiSettings,
) -> None:
    client = FakeGeminiClient(image=image_by_aspect)
    orchestrator = GenerationOrchestrator(unconfigured_settings, client)

    with pytest.raises(MissingCredentialError):
        await orchestrator.process_fashion_task(_request(ToolType.FIT_PREVIEW))

    assert client.calls == []


@pytest.mark.asyncio
async def test_every_branch_failing_still_returns_a_result(
    settings: GeminiSettings,
) -> None:
    client = FakeGeminiClient(
        structured=GeminiError("Gemini API HTTP error: 500"),
        image=GeminiError("Network error calling Gemini API"),
    )
    orchestrator = GenerationOrchestrator(settings, client)

    result = await orchestrator.process_fashion_task(_request(ToolType.AI_PACK))

    assert result.generated is False
    assert result.message == "Complete"


@pytest.mark.asyncio
async def test_unknown_tool_runs_nothing_and_completes(settings: GeminiSettings) -> None:
    client = FakeGeminiClient(structured=TECHPACK_PAYLOAD, image=image_by_aspect)
    orchestrator = GenerationOrchestrator(settings, client)

    result = await orchestrator.process_fashion_task(_request("VARIATION_LAB"))

    assert result.generated is False
    assert result.message == "Complete"
    assert client.calls == []


@pytest.mark.asyncio
async def test_send_confirmation_skips_generation(
    unconfigured_settings: GeminiSettings,
) -> None:
    client = FakeGeminiClient()
    orchestrator = GenerationOrchestrator(unconfigured_settings, client)

    result = await orchestrator.process_fashion_task(
        _request(
            ToolType.AI_PACK,
            action=TaskAction.SEND_CONFIRMATION,
            options=PreviewOptions(lang="KO"),
        )
    )

    assert result.message == "발송 완료"
    assert result.generated is False
    assert client.calls == []


@pytest.mark.asyncio
async def test_branches_are_dispatched_concurrently(settings: GeminiSettings) -> None:
    in_flight = 0
    peak = 0

    def tracked(value: Any):
        async def handler(**call: Any) -> Any:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05)
            in_flight -= 1
            return value(**call) if callable(value) else value

        return handler

    client = FakeGeminiClient(
        structured=tracked(TECHPACK_PAYLOAD), image=tracked(image_by_aspect)
    )
    orchestrator = GenerationOrchestrator(settings, client)

    result = await orchestrator.process_fashion_task(_request(ToolType.AI_PACK))

    assert peak == 3
    assert result.generated is True


@pytest.mark.asyncio
async def test_result_does_not_depend_on_completion_order(
    settings: GeminiSettings,
) -> None:
    fast_document = FakeGeminiClient(
        structured=delayed(TECHPACK_PAYLOAD, 0.0),
        image=delayed(image_by_aspect, 0.05),
    )
    slow_document = FakeGeminiClient(
        structured=delayed(TECHPACK_PAYLOAD, 0.05),
        image=delayed(image_by_aspect, 0.0),
    )

    first = await GenerationOrchestrator(settings, fast_document).process_fashion_task(
        _request(ToolType.AI_PACK)
    )
    second = await GenerationOrchestrator(settings, slow_document).process_fashion_task(
        _request(ToolType.AI_PACK)
    )

    assert first == second


@pytest.mark.asyncio
async def test_slow_branch_times_out_without_blocking_others() -> None:
    settings = GeminiSettings(api_key="test-key", branch_timeout_seconds=0.05)
    client = FakeGeminiClient(
        structured=TECHPACK_PAYLOAD, image=delayed(image_by_aspect, 1.0)
    )
    orchestrator = GenerationOrchestrator(settings, client)
    request = _request(ToolType.AI_PACK)

    outcomes = await orchestrator.dispatch(request, select_branches(ToolType.AI_PACK))

    by_kind = {outcome.kind: outcome for outcome in outcomes}
    assert isinstance(by_kind[BranchKind.DOCUMENT], BranchSuccess)
    assert isinstance(by_kind[BranchKind.FLAT_SKETCH], BranchFailure)
    assert by_kind[BranchKind.FLAT_SKETCH].reason == FailureReason.TIMEOUT
    assert by_kind[BranchKind.STYLED_PHOTO].reason == FailureReason.TIMEOUT


@pytest.mark.asyncio
async def test_failures_are_tagged_by_reason(settings: GeminiSettings) -> None:
    client = FakeGeminiClient(
        structured={"unexpected": True},
        image=lambda **call: None if call["aspect_ratio"] == "4:3" else 1 / 0,
    )
    orchestrator = GenerationOrchestrator(settings, client)

    outcomes = await orchestrator.dispatch(
        _request(ToolType.AI_PACK), select_branches(ToolType.AI_PACK)
    )

    reasons = {outcome.kind: outcome.reason for outcome in outcomes}
    assert reasons == {
        BranchKind.DOCUMENT: FailureReason.INVALID_DOCUMENT,
        BranchKind.FLAT_SKETCH: FailureReason.NO_IMAGE,
        BranchKind.STYLED_PHOTO: FailureReason.REQUEST_FAILED,
    }


@pytest.mark.asyncio
async def test_document_request_shape(settings: GeminiSettings) -> None:
    client = FakeGeminiClient(structured=TECHPACK_PAYLOAD)
    orchestrator = GenerationOrchestrator(settings, client)

    await orchestrator.process_fashion_task(
        _request(ToolType.PRO_TECHPACK, options=PreviewOptions(lang="KO", fit="Slim"))
    )

    call = client.calls[0]
    assert call["model"] == "text-model"
    assert call["temperature"] == 0.1
    assert call["schema"]["properties"]["docs"]["type"] == "ARRAY"
    assert "Language: Korean." in call["system_instruction"]
    assert call["parts"][0] == {
        "inline_data": {"mime_type": "image/png", "data": "U0tFVENI"}
    }
    assert "Boxy Shirt" in call["parts"][1]["text"]
    assert 'based on the "Slim" fit' in call["parts"][1]["text"]


@pytest.mark.asyncio
async def test_styled_photo_attaches_first_top_swatch(settings: GeminiSettings) -> None:
    client = FakeGeminiClient(image=image_by_aspect)
    orchestrator = GenerationOrchestrator(settings, client)

    await orchestrator.process_fashion_task(
        _request(
            ToolType.MATERIAL_ENHANCE,
            options=PreviewOptions(item_type=ItemType.JEANS),
            top_swatches=["U1dBVENIMQ==", "U1dBVENIMg=="],
        )
    )

    call = client.calls[0]
    assert call["aspect_ratio"] == "3:4"
    assert call["model"] == "image-model"
    assert "waist down" in call["parts"][0]["text"]
    assert len(call["parts"]) == 3
    assert call["parts"][2]["inline_data"]["data"] == "U1dBVENIMQ=="


@pytest.mark.asyncio
async def test_flat_sketch_prompt_follows_language(settings: GeminiSettings) -> None:
    client = FakeGeminiClient(image=image_by_aspect)
    orchestrator = GenerationOrchestrator(settings, client)

    result = await orchestrator.process_fashion_task(
        _request(ToolType.REAL_FLAT, options=PreviewOptions(lang="KO"))
    )

    call = client.calls[0]
    assert call["aspect_ratio"] == "4:3"
    assert call["parts"][0]["text"].startswith("전문 의류 도식화")
    assert result.flat_sketch == "data:image/png;base64,FLAT_B64"
    assert result.message == "생성 완료"
