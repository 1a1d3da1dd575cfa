"""Preview models for the transform/render endpoints and the preview socket."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from livepreview.types import TransformationResult


class PreviewRequest(BaseModel):
    """What the client sends to POST /api/preview/transform and /render."""

    model_config = {"extra": "forbid"}

    code: str
    filename: str | None = Field(default=None, max_length=255)
    class_name: str | None = Field(default=None, max_length=500)
    token: int = Field(default=0, ge=0)
    react_version: str | None = Field(default=None, max_length=32, pattern=r"^[0-9A-Za-z.\-]+$")
    include_tailwind: bool | None = None
    title: str | None = Field(default=None, max_length=200)


class LogicalFileOut(BaseModel):
    path: str
    content: str


class SkippedFileOut(BaseModel):
    path: str
    reason: str


class ImportOut(BaseModel):
    source: str
    imported: str
    local: str


class DiagnosticOut(BaseModel):
    pass_name: str
    message: str
    level: Literal["info", "warning"] = "info"


class TransformResponse(BaseModel):
    """What the transform endpoint returns."""

    is_multi_file: bool
    processed_code: str
    component_name: str
    component_source: str
    files: list[LogicalFileOut] = Field(default_factory=list)
    skipped: list[SkippedFileOut] = Field(default_factory=list)
    imports: list[ImportOut] = Field(default_factory=list)
    diagnostics: list[DiagnosticOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: TransformationResult) -> TransformResponse:
        return cls(
            is_multi_file=result.is_multi_file,
            processed_code=result.processed_code,
            component_name=result.component_name,
            component_source=result.component_source.value,
            files=[LogicalFileOut(path=f.path, content=f.content) for f in result.files],
            skipped=[SkippedFileOut(path=s.path, reason=s.reason) for s in result.skipped],
            imports=[ImportOut(source=b.source, imported=b.imported, local=b.local) for b in result.imports],
            diagnostics=[DiagnosticOut(pass_name=d.pass_name, message=d.message, level=d.level) for d in result.diagnostics],
        )


# ---------------------------------------------------------------------------
# WebSocket messages
# ---------------------------------------------------------------------------


class SourceMessage(BaseModel):
    """Client -> server: new code to preview."""

    type: Literal["source"]
    code: str | None = None
    filename: str | None = None
    class_name: str | None = None


class SandboxErrorMessage(BaseModel):
    """Client -> server: the sandbox document reported a runtime error."""

    type: Literal["sandbox.error"]
    token: int | None = None
    message: str = "Unknown error"
    stack: str | None = None


def document_message(token: int, component: str, html: str) -> dict[str, Any]:
    return {"type": "preview.document", "token": token, "component": component, "html": html}


def state_message(status: dict[str, Any]) -> dict[str, Any]:
    return {"type": "preview.state", **status}
