"""Preview routes — transform generated code and render harness documents."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import HTMLResponse

from backend.config import settings
from backend.models.preview import PreviewRequest, TransformResponse
from livepreview.errors import EmptyInputError, TransformationError
from livepreview.pipeline import build_preview, transform
from livepreview.types import HarnessOptions, SourceDocument

logger = logging.getLogger(__name__)

router = APIRouter(tags=["preview"])


def harness_options(
    react_version: str | None = None,
    include_tailwind: bool | None = None,
    title: str | None = None,
) -> HarnessOptions:
    """Settings defaults, overridden by whatever the request asked for."""
    return HarnessOptions(
        react_version=react_version or settings.PREVIEW_REACT_VERSION,
        include_tailwind=settings.PREVIEW_TAILWIND if include_tailwind is None else include_tailwind,
        title=title,
    )


def _check_input(req: PreviewRequest) -> None:
    if not req.code.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(EmptyInputError()))
    if len(req.code.encode("utf-8")) > settings.PREVIEW_MAX_CODE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"Code exceeds {settings.PREVIEW_MAX_CODE_BYTES} bytes.",
        )


@router.post("/api/preview/transform", status_code=200)
async def transform_code(req: PreviewRequest) -> TransformResponse:
    """
    Run the stripping passes and return the processed code, the resolved
    component and the per-pass diagnostics. No HTML is built.
    """
    _check_input(req)
    try:
        result = transform(req.code, req.filename)
    except TransformationError as e:
        logger.warning("preview: transform failed: %s", e)
        raise HTTPException(status_code=422, detail=str(e)) from e

    return TransformResponse.from_result(result)


@router.post("/api/preview/render", response_class=HTMLResponse)
async def render_code(req: PreviewRequest) -> HTMLResponse:
    """
    Return the full harness document for the code.

    A failing pass still yields a document (the error page) so the caller can
    load it as-is; the message is repeated in the X-Preview-Error header.
    """
    _check_input(req)
    options = harness_options(req.react_version, req.include_tailwind, req.title)
    document = build_preview(SourceDocument(req.code, req.filename, req.class_name), options, token=req.token)

    headers = {"X-Preview-Component": document.component_name}
    if not document.ok:
        # header values must be latin-1 and single-line
        headers["X-Preview-Error"] = (document.error.splitlines() or [""])[0].encode("latin-1", "replace").decode("latin-1")
    return HTMLResponse(content=document.html, headers=headers)
