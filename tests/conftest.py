"""Shared test fixtures for pytest.

The generation services take their Gemini client by injection, so most tests
run against ``FakeGeminiClient`` and never touch the network.
"""

import asyncio
import inspect
import os
from typing import Any, Dict, List, Optional

import pytest

os.environ.setdefault("GEMINI_KEY", "")

from drapicorn.config import GeminiSettings


TECHPACK_PAYLOAD: Dict[str, Any] = {
    "docs": [
        {
            "part": "TOP",
            "details": {"stitching": "Single needle 12 SPI", "hem": "Double fold"},
            "measurement": {"chestWidth": "58cm", "totalLength": "70cm"},
            "materials": {"mainFabric": "Cotton twill", "composition": "100% cotton"},
            "designSummary": ["Boxy fit", "Dropped shoulder"],
            "factoryRecommendations": [
                {"name": "Hanil Sewing", "location": "Seoul", "reason": "Woven tops"}
            ],
        },
        {"part": "BOTTOM", "materials": {}, "details": {}},
    ]
}


async def _resolve(handler: Any, **kwargs: Any) -> Any:
    if isinstance(handler, BaseException):
        raise handler
    if callable(handler):
        result = handler(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
    return handler


class FakeGeminiClient:
    """Records calls and answers from a value, an exception or a callable."""

    def __init__(
        self,
        structured: Any = None,
        image: Any = None,
        text: Any = "",
    ) -> None:
        self.structured = structured
        self.image = image
        self.text = text
        self.calls: List[Dict[str, Any]] = []

    async def generate_structured(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        schema: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Any:
        call = {
            "method": "structured",
            "model": model,
            "parts": parts,
            "schema": schema,
            "system_instruction": system_instruction,
            "temperature": temperature,
            "tools": tools,
        }
        self.calls.append(call)
        return await _resolve(self.structured, **call)

    async def generate_image(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        aspect_ratio: Optional[str] = None,
    ) -> Optional[str]:
        call = {
            "method": "image",
            "model": model,
            "parts": parts,
            "aspect_ratio": aspect_ratio,
        }
        self.calls.append(call)
        return await _resolve(self.image, **call)

    async def generate_text(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        call = {"method": "text", "model": model, "parts": parts, "tools": tools}
        self.calls.append(call)
        return await _resolve(self.text, **call)


def image_by_aspect(**call: Any) -> str:
    """Image handler answering per branch: flat sketches are 4:3, photos 3:4."""
    return "FLAT_B64" if call["aspect_ratio"] == "4:3" else "PHOTO_B64"


def delayed(value: Any, seconds: float):
    async def handler(**call: Any) -> Any:
        await asyncio.sleep(seconds)
        return await _resolve(value, **call)

    return handler


@pytest.fixture
def settings() -> GeminiSettings:
    return GeminiSettings(
        api_key="test-key",
        text_model="text-model",
        image_model="image-model",
        branch_timeout_seconds=2.0,
    )


@pytest.fixture
def unconfigured_settings() -> GeminiSettings:
    return GeminiSettings(api_key=None)
