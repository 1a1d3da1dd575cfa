"""
livepreview — File Classifier & Merger

Splits a normalized blob on `// <path>` markers into logical files, keeps
only the ones that can contribute something renderable, orders them
(type files first, the root App file last) and concatenates them behind
readable banners.
"""

from __future__ import annotations

import re

from livepreview.normalizer import find_markers, strip_markers
from livepreview.syntax import has_executable_declaration
from livepreview.types import Diagnostics, LogicalFile, MergeResult, SkippedFile

PASS = "merge"

SCRIPT_EXTENSIONS = {"ts", "tsx", "js", "jsx", "mjs", "cjs"}

NON_SCRIPT_EXTENSIONS = {
    "css", "scss", "sass", "less",  # stylesheets
    "json", "yaml", "yml", "env", "lock", "svg",  # data
    "md", "mdx", "txt", "html", "htm",  # documentation
}

ENTRY_POINT_STEMS = {"index", "main"}
TYPE_FILE_STEMS = {"types", "type", "interfaces"}
ROOT_FILE_STEM = "app"

_CONFIG_MODULE_RE = re.compile(r"\.config\.(?:[cm]?[jt]s)$", re.IGNORECASE)
_DECLARE_RE = re.compile(r"^[ \t]*declare\s+", re.MULTILINE)


def banner(path: str) -> str:
    return f"// ============ {path} ============"


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


def split_logical_files(text: str) -> tuple[str, list[LogicalFile]]:
    """
    Split on marker lines. Returns (preamble, files).

    A path that shows up twice keeps only its last block, at the position of
    that last block.
    """
    markers = find_markers(text)
    if not markers:
        return text, []

    preamble = text[: markers[0].start()]
    by_path: dict[str, LogicalFile] = {}
    for index, m in enumerate(markers):
        end = markers[index + 1].start() if index + 1 < len(markers) else len(text)
        path = m.group("path")
        by_path.pop(path, None)
        by_path[path] = LogicalFile(path=path, content=text[m.end() : end].strip("\n"))
    return preamble, list(by_path.values())


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_file(file: LogicalFile) -> str | None:
    """Return None when the file should be merged, else the reason it is skipped."""
    path = file.path.lower()
    ext = _extension(path)

    if ext in NON_SCRIPT_EXTENSIONS:
        return f"non-executable .{ext} file"
    if path.endswith(".d.ts"):
        return "type declaration file"
    if _CONFIG_MODULE_RE.search(path):
        return "tooling config module"
    if file.stem.lower() in ENTRY_POINT_STEMS and ext in SCRIPT_EXTENSIONS:
        return "entry point (mounting only)"
    if not has_executable_declaration(file.content):
        if _DECLARE_RE.search(file.content):
            return "ambient declarations only"
        return "no executable declarations"
    return None


def is_type_file(file: LogicalFile) -> bool:
    path = file.path.lower()
    return file.stem.lower() in TYPE_FILE_STEMS or ".types." in path or "/types/" in f"/{path}"


def is_root_file(file: LogicalFile) -> bool:
    return file.stem.lower() == ROOT_FILE_STEM


def order_files(files: list[LogicalFile]) -> list[LogicalFile]:
    """Type files first, root file(s) last, everything else in input order."""

    def rank(file: LogicalFile) -> int:
        if is_type_file(file):
            return 0
        if is_root_file(file):
            return 2
        return 1

    return sorted(files, key=rank)


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def _single_file(text: str, preamble: str, files: list[LogicalFile]) -> str:
    if not files:
        return strip_markers(text)
    parts = [preamble.strip("\n")] if preamble.strip() else []
    for file in files:
        if _extension(file.path) in NON_SCRIPT_EXTENSIONS:
            continue
        parts.append(file.content)
    return "\n\n".join(parts)


def merge_files(text: str, diagnostics: Diagnostics | None = None) -> MergeResult:
    """Decide single vs multi-file and produce one ordered source string."""
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    preamble, files = split_logical_files(text)

    if len(files) <= 1:
        diagnostics.info(PASS, "single-file input")
        return MergeResult(is_multi_file=False, code=_single_file(text, preamble, files), files=files)

    diagnostics.info(PASS, f"multi-file input with {len(files)} file(s)")
    kept: list[LogicalFile] = []
    skipped: list[SkippedFile] = []
    for file in files:
        reason = classify_file(file)
        if reason is None:
            kept.append(file)
            diagnostics.info(PASS, f"including {file.path}")
        else:
            skipped.append(SkippedFile(file.path, reason))
            diagnostics.info(PASS, f"skipping {file.path}: {reason}")

    if not kept:
        diagnostics.warning(PASS, "no executable file found, treating input as a single file")
        return MergeResult(
            is_multi_file=False,
            code=_single_file(text, preamble, files),
            files=files,
            skipped=skipped,
        )

    blocks: list[str] = []
    if preamble.strip() and has_executable_declaration(preamble):
        diagnostics.info(PASS, "keeping code found before the first file marker")
        blocks.append(preamble.strip("\n"))

    ordered = order_files(kept)
    blocks.extend(f"{banner(file.path)}\n{file.content}" for file in ordered)
    return MergeResult(is_multi_file=True, code="\n\n".join(blocks), files=ordered, skipped=skipped)
