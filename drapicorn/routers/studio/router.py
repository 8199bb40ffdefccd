"""FastAPI router for design studio endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from drapicorn.config import logger
from drapicorn.core import database_ops
from drapicorn.core.gemini import GeminiError, MissingCredentialError
from drapicorn.models import TaskAction
from drapicorn.services.generation_service import GenerationOrchestrator
from drapicorn.services.studio_service import StudioService

from .dependencies import get_current_user, get_orchestrator, get_studio_service
from .models import (
    FactoryChatRequest,
    FactoryChatResponse,
    GenerationResponse,
    MarketReactionRequest,
    MarketReactionResponse,
    NewsResponse,
    ProjectListResponse,
    ProjectResponse,
    VariationsRequest,
    VariationsResponse,
)
from .services import build_generation_request, persist_result

router = APIRouter(prefix="/api/v1", tags=["Studio"])


def _configuration_error(exc: MissingCredentialError) -> HTTPException:
    logger.error("Generation service is not configured", extra={"error": str(exc)})
    return HTTPException(
        status_code=503, detail="AI generation service is not configured"
    )


@router.post("/generate", response_model=GenerationResponse)
async def generate_from_sketch(
    tool: str = Form(..., description="Tool selector, e.g. AI_PACK"),
    sketch: UploadFile = File(..., description="Design sketch image"),
    top_swatch: Optional[UploadFile] = File(
        default=None, description="Top fabric swatch (optional)"
    ),
    bottom_swatch: Optional[UploadFile] = File(
        default=None, description="Bottom fabric swatch (optional)"
    ),
    options: Optional[str] = Form(default=None, description="PreviewOptions JSON"),
    meta: Optional[str] = Form(default=None, description="TechPackMeta JSON"),
    action: TaskAction = Form(default=TaskAction.GENERATE),
    user: dict = Depends(get_current_user),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationResponse:
    """Generate the artifacts of a tool from a sketch and save them."""

    try:
        logger.info(
            "Generation request received",
            extra={"user_id": user.get("id"), "tool": tool, "action": action.value},
        )

        request = await build_generation_request(
            tool, sketch, top_swatch, bottom_swatch, options, meta, action
        )
        result = await orchestrator.process_fashion_task(request)

        saved, project_id = False, None
        if action == TaskAction.GENERATE:
            if result.generated:
                saved, project_id = await persist_result(user, request.meta, result)
            else:
                # Keep the previously saved project for this style number
                logger.warning(
                    "Generation produced no artifacts; skipping project save",
                    extra={"user_id": user.get("id"), "tool": tool},
                )

        return GenerationResponse(
            success=True,
            generated=result.generated,
            result=result,
            saved=saved,
            project_id=project_id,
        )

    except HTTPException:
        raise
    except MissingCredentialError as exc:
        raise _configuration_error(exc)
    except Exception as exc:
        logger.error("Unexpected error in generation request", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"An unexpected error occurred: {exc}"
        )


@router.get("/projects", response_model=ProjectListResponse)
async def list_user_projects(
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
) -> ProjectListResponse:
    """List the caller's saved projects, newest first."""

    try:
        projects = await database_ops.list_projects(user["id"], limit=limit)
        return ProjectListResponse(success=True, projects=projects)
    except Exception as exc:
        logger.error("Error listing projects", extra={"error": str(exc)})
        raise HTTPException(status_code=500, detail=f"Failed to list projects: {exc}")


@router.get("/projects/{style_no}", response_model=ProjectResponse)
async def get_user_project(
    style_no: str,
    user: dict = Depends(get_current_user),
) -> ProjectResponse:
    """Retrieve one saved project by style number."""

    try:
        project = await database_ops.get_project(user["id"], style_no)
        if not project:
            raise HTTPException(
                status_code=404, detail=f"Project not found: {style_no}"
            )
        return ProjectResponse(success=True, project=project)

    except HTTPException:
        raise
    except Exception as exc:
        logger.error(
            "Error retrieving project",
            extra={"style_no": style_no, "error": str(exc)},
        )
        raise HTTPException(
            status_code=500, detail=f"Failed to retrieve project: {exc}"
        )


@router.post("/variations", response_model=VariationsResponse)
async def create_variations(
    payload: VariationsRequest,
    user: dict = Depends(get_current_user),
    studio: StudioService = Depends(get_studio_service),
) -> VariationsResponse:
    try:
        variations = await studio.generate_variations(
            payload.base_image, payload.axes, payload.intensity, payload.ref_image
        )
        return VariationsResponse(success=True, variations=variations)
    except MissingCredentialError as exc:
        raise _configuration_error(exc)


@router.post("/market-reaction", response_model=MarketReactionResponse)
async def simulate_market_reaction(
    payload: MarketReactionRequest,
    user: dict = Depends(get_current_user),
    studio: StudioService = Depends(get_studio_service),
) -> MarketReactionResponse:
    try:
        reaction = await studio.simulate_market_reaction(payload.image, payload.meta)
        return MarketReactionResponse(success=True, reaction=reaction)
    except MissingCredentialError as exc:
        raise _configuration_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid image: {exc}")
    except GeminiError as exc:
        logger.error("Market simulation failed", extra={"error": str(exc)})
        raise HTTPException(status_code=502, detail=f"Market simulation failed: {exc}")


@router.post("/factory-chat", response_model=FactoryChatResponse)
async def factory_chat(
    payload: FactoryChatRequest,
    user: dict = Depends(get_current_user),
    studio: StudioService = Depends(get_studio_service),
) -> FactoryChatResponse:
    try:
        reply = await studio.get_factory_response(
            payload.history, payload.meta, payload.lang
        )
        return FactoryChatResponse(success=True, reply=reply)
    except MissingCredentialError as exc:
        raise _configuration_error(exc)
    except GeminiError as exc:
        logger.error("Factory chat failed", extra={"error": str(exc)})
        raise HTTPException(status_code=502, detail=f"Factory chat failed: {exc}")


@router.get("/news", response_model=NewsResponse)
async def fashion_news(
    lang: str = Query("EN"),
    region: str = Query("GLOBAL"),
    user: dict = Depends(get_current_user),
    studio: StudioService = Depends(get_studio_service),
) -> NewsResponse:
    try:
        articles = await studio.get_fashion_news(lang, region)
        return NewsResponse(success=True, articles=articles)
    except MissingCredentialError as exc:
        raise _configuration_error(exc)
    except GeminiError as exc:
        logger.error("News lookup failed", extra={"error": str(exc)})
        raise HTTPException(status_code=502, detail=f"News lookup failed: {exc}")


@router.get("/health")
async def health_check() -> dict:
    """Simple health check endpoint."""

    return {
        "status": "healthy",
        "service": "drapicorn-studio-api",
        "version": "1.0.0",
    }
