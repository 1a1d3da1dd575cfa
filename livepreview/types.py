"""
livepreview — Shared Types

Data classes passed between the pipeline passes, the harness builder and the
lifecycle controller. These are the contracts that bind the package together.

Flow:
  SourceDocument → (normalize, merge) → MergeResult
                 → (strip modules, strip types) → TransformationResult
                 → (harness) → RenderDocument
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceDocument:
    """Raw input from the host UI. Immutable per render attempt."""

    code: str
    filename: str | None = None
    class_name: str | None = None


@dataclass(frozen=True)
class LogicalFile:
    """A source file recovered from a concatenated multi-file blob."""

    path: str
    content: str

    @property
    def basename(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def stem(self) -> str:
        name = self.basename
        # "types.d.ts" → "types", "App.tsx" → "App"
        return name.split(".", 1)[0]


@dataclass(frozen=True)
class SkippedFile:
    """A logical file the classifier refused, and why."""

    path: str
    reason: str


# ---------------------------------------------------------------------------
# Pass results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportBinding:
    """
    One name an import statement brought into scope.

    imported is "default" for default imports, "*" for namespace imports,
    otherwise the exported name. local is the name the code uses.
    """

    source: str
    imported: str
    local: str

    @property
    def is_relative(self) -> bool:
        return self.source.startswith((".", "/", "@/", "~/"))


@dataclass
class MergeResult:
    """Output of the file classifier & merger."""

    is_multi_file: bool
    code: str
    files: list[LogicalFile] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)


@dataclass
class ModuleStripResult:
    """Output of the module syntax stripper, plus what it saw on the way."""

    code: str
    default_exports: list[str] = field(default_factory=list)
    imports: list[ImportBinding] = field(default_factory=list)


class ComponentSource(str, Enum):
    """Which resolver tier produced the component name."""

    EXPORT_DEFAULT = "export-default"
    DECLARED_CONST = "declared-const"
    DECLARED_FUNCTION = "declared-function"
    DECLARED_CLASS = "declared-class"
    FILENAME = "filename"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ComponentDescriptor:
    """The resolved entry symbol. name is never empty."""

    name: str
    source: ComponentSource


@dataclass
class Diagnostic:
    """One structured log record emitted by a pass."""

    pass_name: str
    message: str
    level: str = "info"  # "info" | "warning"

    def to_dict(self) -> dict[str, str]:
        return {"pass": self.pass_name, "message": self.message, "level": self.level}


class Diagnostics:
    """
    Collects Diagnostic records for one pipeline run.

    Records are also mirrored to the module logger so a server log still
    shows them, but nothing depends on that.
    """

    def __init__(self) -> None:
        self.records: list[Diagnostic] = []

    def info(self, pass_name: str, message: str) -> None:
        self.records.append(Diagnostic(pass_name, message))
        logger.debug("%s: %s", pass_name, message)

    def warning(self, pass_name: str, message: str) -> None:
        self.records.append(Diagnostic(pass_name, message, level="warning"))
        logger.warning("%s: %s", pass_name, message)

    def for_pass(self, pass_name: str) -> list[Diagnostic]:
        return [d for d in self.records if d.pass_name == pass_name]

    def __iter__(self):
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class TransformationResult:
    """
    Output of the stripping passes.

    processed_code holds no import/export keywords and no type-only syntax.
    """

    is_multi_file: bool
    processed_code: str
    component_name: str
    component_source: ComponentSource = ComponentSource.FALLBACK
    files: list[LogicalFile] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)
    imports: list[ImportBinding] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def component(self) -> ComponentDescriptor:
        return ComponentDescriptor(self.component_name, self.component_source)


# ---------------------------------------------------------------------------
# Harness
# ---------------------------------------------------------------------------


@dataclass
class HarnessOptions:
    """Options controlling what the harness document loads."""

    react_version: str = "18"
    include_tailwind: bool = True
    title: str | None = None  # defaults to "Preview - <component>"
    lang: str = "en"
    # module specifier -> window global the host page already provides
    extra_globals: dict[str, str] = field(default_factory=dict)


@dataclass
class RenderDocument:
    """
    A complete, self-contained HTML document for the sandbox.

    Built fresh for every run. error is set when the document is an error
    page produced at construction time rather than a real harness.
    """

    html: str
    component_name: str
    token: int = 0
    libraries: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class LifecycleState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class PreviewStatus:
    """Snapshot of the controller, handed to listeners on every transition."""

    state: LifecycleState
    error_message: str | None = None
    retry_token: int = 0
    component_name: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "error": self.error_message,
            "token": self.retry_token,
            "component": self.component_name,
        }
