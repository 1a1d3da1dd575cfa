"""
Pydantic models for the live preview service.

All wire shapes defined here. No imports from routes.
"""

from backend.models.preview import (
    PreviewRequest,
    SandboxErrorMessage,
    SourceMessage,
    TransformResponse,
)

__all__ = [
    # HTTP
    "PreviewRequest",
    "TransformResponse",
    # WebSocket
    "SourceMessage",
    "SandboxErrorMessage",
]
