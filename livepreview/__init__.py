"""
livepreview — preview pipeline for generated React code.

Pieces:
  pipeline   — transform(code) → TransformationResult  (pure, synchronous)
  harness    — TransformationResult → RenderDocument (HTML for the sandbox)
  lifecycle  — PreviewController: idle/loading/success/error around a sandbox

Passes (usable on their own):
  normalize_source, merge_files, strip_modules, strip_types, resolve_component
"""

from livepreview.errors import EmptyInputError, PreviewError, SandboxRuntimeError, TransformationError
from livepreview.files import merge_files
from livepreview.harness import build_error_document, build_render_document
from livepreview.lifecycle import AsyncioScheduler, LifecycleEvent, PreviewController
from livepreview.module_stripper import strip_modules
from livepreview.normalizer import normalize_source
from livepreview.pipeline import build_preview, transform
from livepreview.resolver import FALLBACK_COMPONENT, resolve_component
from livepreview.type_stripper import strip_types
from livepreview.types import (
    ComponentDescriptor,
    ComponentSource,
    HarnessOptions,
    LifecycleState,
    PreviewStatus,
    RenderDocument,
    SourceDocument,
    TransformationResult,
)

__all__ = [
    "transform",
    "build_preview",
    "build_render_document",
    "build_error_document",
    "normalize_source",
    "merge_files",
    "strip_modules",
    "strip_types",
    "resolve_component",
    "FALLBACK_COMPONENT",
    "PreviewController",
    "AsyncioScheduler",
    "LifecycleEvent",
    "LifecycleState",
    "PreviewStatus",
    "SourceDocument",
    "TransformationResult",
    "ComponentDescriptor",
    "ComponentSource",
    "HarnessOptions",
    "RenderDocument",
    "PreviewError",
    "EmptyInputError",
    "TransformationError",
    "SandboxRuntimeError",
]
