"""Service helpers used by the studio router."""

from typing import Optional, Tuple

from fastapi import HTTPException, UploadFile
from pydantic import ValidationError

from drapicorn.config import logger
from drapicorn.core import database_ops
from drapicorn.core.gemini import encode_image_bytes
from drapicorn.models import (
    GenerationRequest,
    GenerationResult,
    PreviewOptions,
    TaskAction,
    TechPackMeta,
)


async def read_image_upload(upload: UploadFile, label: str) -> str:
    """Return an uploaded image as a data URI, keeping its content type."""
    content = await upload.read()
    if not content:
        raise HTTPException(status_code=400, detail=f"{label} is empty")
    content_type = upload.content_type or "image/png"
    return f"data:{content_type};base64,{encode_image_bytes(content)}"


def parse_options(raw: Optional[str]) -> PreviewOptions:
    try:
        return PreviewOptions.model_validate_json(raw or "{}")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid options: {exc}")


def parse_meta(raw: Optional[str]) -> Optional[TechPackMeta]:
    if not raw:
        return None
    try:
        return TechPackMeta.model_validate_json(raw)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid meta: {exc}")


async def build_generation_request(
    tool: str,
    sketch: UploadFile,
    top_swatch: Optional[UploadFile],
    bottom_swatch: Optional[UploadFile],
    options_json: Optional[str],
    meta_json: Optional[str],
    action: TaskAction,
) -> GenerationRequest:
    """Validate the multipart form and assemble an immutable request."""

    options = parse_options(options_json)
    meta = parse_meta(meta_json)

    if action == TaskAction.GENERATE and not (meta and meta.item_name.strip()):
        raise HTTPException(status_code=400, detail="Please enter an item name.")

    image = await read_image_upload(sketch, "Sketch image")
    top_swatches = [await read_image_upload(top_swatch, "Top swatch")] if top_swatch else []
    bottom_swatches = (
        [await read_image_upload(bottom_swatch, "Bottom swatch")]
        if bottom_swatch
        else []
    )

    return GenerationRequest(
        tool=tool,
        image=image,
        options=options,
        top_swatches=top_swatches,
        bottom_swatches=bottom_swatches,
        meta=meta,
        action=action,
    )


async def persist_result(
    user: dict,
    meta: Optional[TechPackMeta],
    result: GenerationResult,
) -> Tuple[bool, Optional[str]]:
    """Store the result under the user's style number when one is given."""

    style_no = meta.style_no.strip() if meta else ""
    if not style_no:
        logger.info("No style number provided; skipping project save")
        return False, None

    try:
        record = await database_ops.save_project(
            user_id=user["id"],
            style_no=style_no,
            meta=meta,
            result=result,
        )
    except Exception as exc:
        logger.error(
            "Failed to save project",
            extra={"user_id": user.get("id"), "style_no": style_no, "error": str(exc)},
        )
        return False, None

    return True, str(record.get("id")) if record.get("id") is not None else None
