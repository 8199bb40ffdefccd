"""Sketch-to-artifact generation: tool routing, parallel fan-out and aggregation."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Protocol,
    Sequence,
    Union,
)

from pydantic import ValidationError

from drapicorn.config import GeminiSettings, load_gemini_settings, logger
from drapicorn.core.gemini import GeminiClient, image_part, require_api_key, text_part
from drapicorn.core.prompt_templates import (
    build_flat_sketch_prompt,
    build_styled_photo_prompt,
    build_techpack_system_prompt,
    build_techpack_user_prompt,
    is_korean,
)
from drapicorn.core.response_schemas import TECHPACK_SCHEMA
from drapicorn.models import (
    GenerationRequest,
    GenerationResult,
    TaskAction,
    TechPack,
    TechPackMeta,
    ToolType,
)

FLAT_SKETCH_ASPECT_RATIO = "4:3"
STYLED_PHOTO_ASPECT_RATIO = "3:4"
DOCUMENT_TEMPERATURE = 0.1


def _log(level: int, message: str, **context: Any) -> None:
    """Helper to emit structured logs with contextual metadata."""
    logger.log(level, "%s | context=%s", message, context)


class GenerativeClient(Protocol):
    """The Gemini capabilities the generation services depend on."""

    async def generate_structured(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        schema: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Any: ...

    async def generate_image(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        aspect_ratio: Optional[str] = None,
    ) -> Optional[str]: ...

    async def generate_text(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> str: ...


# -------------------------
# Task routing
# -------------------------
class BranchKind(str, Enum):
    DOCUMENT = "DOCUMENT"
    FLAT_SKETCH = "FLAT_SKETCH"
    STYLED_PHOTO = "STYLED_PHOTO"


TOOL_BRANCHES: Dict[ToolType, FrozenSet[BranchKind]] = {
    ToolType.AI_PACK: frozenset(
        {BranchKind.DOCUMENT, BranchKind.FLAT_SKETCH, BranchKind.STYLED_PHOTO}
    ),
    ToolType.PRO_TECHPACK: frozenset({BranchKind.DOCUMENT}),
    ToolType.CLOTH_ONLY_FLAT: frozenset({BranchKind.FLAT_SKETCH}),
    ToolType.REAL_FLAT: frozenset({BranchKind.FLAT_SKETCH}),
    ToolType.FIT_PREVIEW: frozenset({BranchKind.STYLED_PHOTO}),
    ToolType.MATERIAL_ENHANCE: frozenset({BranchKind.STYLED_PHOTO}),
}


def select_branches(tool: Union[ToolType, str, None]) -> FrozenSet[BranchKind]:
    """Return the branches a tool runs. Unknown tools run nothing."""
    try:
        tool_type = ToolType(tool)
    except ValueError:
        return frozenset()
    return TOOL_BRANCHES[tool_type]


# -------------------------
# Branch outcomes
# -------------------------
class FailureReason(str, Enum):
    REQUEST_FAILED = "REQUEST_FAILED"
    INVALID_DOCUMENT = "INVALID_DOCUMENT"
    NO_IMAGE = "NO_IMAGE"
    TIMEOUT = "TIMEOUT"


@dataclass(frozen=True, slots=True)
class BranchSuccess:
    kind: BranchKind
    data: Union[TechPack, str]


@dataclass(frozen=True, slots=True)
class BranchFailure:
    kind: BranchKind
    reason: FailureReason
    detail: str = ""


BranchOutcome = Union[BranchSuccess, BranchFailure]


class InvalidDocumentError(ValueError):
    """Structured output that does not match the tech pack schema."""


def decode_document(payload: Any) -> TechPack:
    if not isinstance(payload, dict):
        raise InvalidDocumentError(
            f"Expected a JSON object, got {type(payload).__name__}"
        )
    try:
        return TechPack.model_validate(payload)
    except ValidationError as exc:
        raise InvalidDocumentError(str(exc)) from exc


# -------------------------
# Aggregation
# -------------------------
COMPLETE_MESSAGE_KO = "생성 완료"
COMPLETE_MESSAGE_EN = "Complete"
SENT_MESSAGE_KO = "발송 완료"
SENT_MESSAGE_EN = "Sent successfully"


def completion_message(lang: str) -> str:
    return COMPLETE_MESSAGE_KO if is_korean(lang) else COMPLETE_MESSAGE_EN


def as_data_uri(image_base64: str, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{image_base64}"


def _single_line(value: Optional[str]) -> str:
    cleaned = " ".join((value or "").split())
    return cleaned or "N/A"


def format_techpack_text(tech_pack: TechPack, meta: Optional[TechPackMeta] = None) -> str:
    """Flatten a tech pack into one summary line per garment part."""
    item_name = meta.item_name if meta and meta.item_name else "Item"
    lines = []
    for doc in tech_pack.docs:
        main_fabric = doc.materials.main_fabric if doc.materials else None
        stitching = doc.details.stitching if doc.details else None
        lines.append(
            f"[{_single_line(doc.part)}] {_single_line(item_name)} | "
            f"Main Fabric: {_single_line(main_fabric)} | "
            f"Construction: {_single_line(stitching)}"
        )
    return "\n".join(lines)


def _has_data(data: Union[TechPack, str, None]) -> bool:
    if isinstance(data, TechPack):
        return bool(data.docs)
    return bool(data)


def aggregate(
    outcomes: Sequence[BranchOutcome],
    meta: Optional[TechPackMeta] = None,
    lang: str = "EN",
) -> GenerationResult:
    """Merge settled branch outcomes into one result.

    Each branch owns a distinct field, so the merge does not depend on the
    order of ``outcomes``. Failed or empty branches leave their field unset.
    """
    fields: Dict[str, Any] = {}

    for outcome in outcomes:
        if not isinstance(outcome, BranchSuccess) or not _has_data(outcome.data):
            continue

        if outcome.kind == BranchKind.FLAT_SKETCH:
            fields["flat_sketch"] = as_data_uri(outcome.data)
        elif outcome.kind == BranchKind.STYLED_PHOTO:
            fields["styled_photo"] = as_data_uri(outcome.data)
        elif outcome.kind == BranchKind.DOCUMENT:
            fields["tech_pack"] = outcome.data
            fields["text"] = format_techpack_text(outcome.data, meta)

    return GenerationResult(message=completion_message(lang), **fields)


# -------------------------
# Orchestrator
# -------------------------
class GenerationOrchestrator:
    """Runs the generation branches selected by a tool and merges their output."""

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

    async def process_fashion_task(self, request: GenerationRequest) -> GenerationResult:
        lang = request.options.lang

        if request.action == TaskAction.SEND_CONFIRMATION:
            return GenerationResult(
                message=SENT_MESSAGE_KO if is_korean(lang) else SENT_MESSAGE_EN
            )

        require_api_key(self.settings)

        start_time = time.time()
        branches = select_branches(request.tool)
        _log(
            logging.INFO,
            "generation_started",
            tool=getattr(request.tool, "value", request.tool),
            branches=sorted(kind.value for kind in branches),
        )

        outcomes = await self.dispatch(request, branches)
        result = aggregate(outcomes, request.meta, lang)

        _log(
            logging.INFO,
            "generation_completed",
            tool=getattr(request.tool, "value", request.tool),
            generated=result.generated,
            failures={
                outcome.kind.value: outcome.reason.value
                for outcome in outcomes
                if isinstance(outcome, BranchFailure)
            },
            processing_time_ms=int((time.time() - start_time) * 1000),
        )
        return result

    async def dispatch(
        self,
        request: GenerationRequest,
        branches: FrozenSet[BranchKind],
    ) -> List[BranchOutcome]:
        """Run every selected branch concurrently and wait for all of them."""
        builders = {
            BranchKind.DOCUMENT: self._generate_document,
            BranchKind.FLAT_SKETCH: self._generate_flat_sketch,
            BranchKind.STYLED_PHOTO: self._generate_styled_photo,
        }
        selected = [kind for kind in BranchKind if kind in branches]
        if not selected:
            return []

        return list(
            await asyncio.gather(
                *(self._run_branch(kind, builders[kind](request)) for kind in selected)
            )
        )

    async def _run_branch(
        self, kind: BranchKind, call: Awaitable[Union[TechPack, str, None]]
    ) -> BranchOutcome:
        try:
            data = await asyncio.wait_for(
                call, timeout=self.settings.branch_timeout_seconds
            )
        except asyncio.TimeoutError:
            _log(logging.ERROR, "branch_timeout", branch=kind.value)
            return BranchFailure(
                kind,
                FailureReason.TIMEOUT,
                f"No response within {self.settings.branch_timeout_seconds}s",
            )
        except InvalidDocumentError as exc:
            _log(logging.ERROR, "branch_invalid_document", branch=kind.value, error=str(exc))
            return BranchFailure(kind, FailureReason.INVALID_DOCUMENT, str(exc))
        except Exception as exc:
            _log(logging.ERROR, "branch_error", branch=kind.value, error=str(exc))
            return BranchFailure(kind, FailureReason.REQUEST_FAILED, str(exc))

        if data is None:
            _log(logging.WARNING, "branch_no_image", branch=kind.value)
            return BranchFailure(
                kind, FailureReason.NO_IMAGE, "No image found in Gemini API response"
            )

        _log(logging.INFO, "branch_complete", branch=kind.value)
        return BranchSuccess(kind, data)

    async def _generate_document(self, request: GenerationRequest) -> TechPack:
        payload = await self.client.generate_structured(
            model=self.settings.text_model,
            parts=[
                image_part(request.image),
                text_part(build_techpack_user_prompt(request.options, request.meta)),
            ],
            schema=TECHPACK_SCHEMA,
            system_instruction=build_techpack_system_prompt(request.options.lang),
            temperature=DOCUMENT_TEMPERATURE,
        )
        return decode_document(payload)

    async def _generate_flat_sketch(self, request: GenerationRequest) -> Optional[str]:
        return await self.client.generate_image(
            model=self.settings.image_model,
            parts=[
                text_part(build_flat_sketch_prompt(request.options)),
                image_part(request.image),
            ],
            aspect_ratio=FLAT_SKETCH_ASPECT_RATIO,
        )

    async def _generate_styled_photo(self, request: GenerationRequest) -> Optional[str]:
        parts = [
            text_part(build_styled_photo_prompt(request.options)),
            image_part(request.image),
        ]
        if request.top_swatches:
            parts.append(image_part(request.top_swatches[0]))

        return await self.client.generate_image(
            model=self.settings.image_model,
            parts=parts,
            aspect_ratio=STYLED_PHOTO_ASPECT_RATIO,
        )


__all__ = [
    "BranchFailure",
    "BranchKind",
    "BranchOutcome",
    "BranchSuccess",
    "FailureReason",
    "GenerationOrchestrator",
    "GenerativeClient",
    "InvalidDocumentError",
    "TOOL_BRANCHES",
    "aggregate",
    "decode_document",
    "format_techpack_text",
    "select_branches",
]
