"""
livepreview — Pipeline

normalize → merge → strip modules → strip types → collapse → resolve

Pure and synchronous: every call builds its own Diagnostics and nothing is
shared between calls, so it is safe to run from several threads at once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from livepreview.errors import EmptyInputError, PreviewError, TransformationError
from livepreview.files import merge_files
from livepreview.harness import build_error_document, build_render_document
from livepreview.module_stripper import strip_modules
from livepreview.normalizer import collapse_blank_lines, normalize_source
from livepreview.resolver import FALLBACK_COMPONENT, resolve_component
from livepreview.type_stripper import strip_types
from livepreview.types import Diagnostics, HarnessOptions, RenderDocument, SourceDocument, TransformationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PREVIEW_CHARS = 300


def _run(pass_name: str, fn: Callable[..., T], *args) -> T:
    """Run one pass, wrapping anything unexpected in TransformationError."""
    try:
        return fn(*args)
    except PreviewError:
        raise
    except Exception as e:
        logger.exception("pipeline: %s pass raised", pass_name)
        raise TransformationError(pass_name, e) from e


def transform(code: str | None, filename: str | None = None) -> TransformationResult:
    """
    Turn raw generated code into a TransformationResult.

    Raises EmptyInputError for missing or whitespace-only code and
    TransformationError when a pass fails.
    """
    if code is None or not code.strip():
        raise EmptyInputError()

    diagnostics = Diagnostics()
    normalized = _run("normalize", normalize_source, code, diagnostics)
    merged = _run("merge", merge_files, normalized, diagnostics)
    modules = _run("modules", strip_modules, merged.code, diagnostics)
    stripped = _run("types", strip_types, modules.code, diagnostics)
    processed = _run("collapse", collapse_blank_lines, stripped)
    component = _run("resolve", resolve_component, processed, filename, modules.default_exports, diagnostics)

    logger.debug("pipeline: final code for %s:\n%s", component.name, processed[:_PREVIEW_CHARS])
    return TransformationResult(
        is_multi_file=merged.is_multi_file,
        processed_code=processed,
        component_name=component.name,
        component_source=component.source,
        files=merged.files,
        skipped=merged.skipped,
        imports=modules.imports,
        diagnostics=diagnostics.records,
    )


def build_preview(
    source: SourceDocument,
    options: HarnessOptions | None = None,
    token: int = 0,
) -> RenderDocument:
    """
    Transform and wrap in one call. Always returns a document: empty input and
    pass failures come back as error documents (document.ok is False).
    """
    try:
        result = transform(source.code, source.filename)
    except PreviewError as e:
        logger.info("pipeline: %s", e)
        return build_error_document(str(e), token=token, component_name=FALLBACK_COMPONENT, options=options)

    logger.info(
        "pipeline: built %s (%s, %s)",
        result.component_name,
        result.component_source.value,
        "multi-file" if result.is_multi_file else "single-file",
    )
    return build_render_document(result, options, token=token, class_name=source.class_name)
