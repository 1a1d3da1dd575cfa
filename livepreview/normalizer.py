"""
livepreview — Fence & Separator Normalizer

Turns LLM output into plain source text:
  - documentation fences (``` or ~~~, any language tag) are removed
  - prose around balanced fences is dropped
  - per-file labels (comment markers, markdown headings, bold labels,
    fence titles) are rewritten to one canonical marker line: `// <path>`

All detection is anchored to whole lines, so comment-like text inside a
string or a JSX expression is never touched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from livepreview.types import Diagnostics

PASS = "normalize"

# Extensions a file label may carry. `.d.ts` is matched through `.ts`.
_EXTENSIONS = r"(?:tsx|ts|jsx|js|mjs|cjs|css|scss|sass|less|json|mdx|md|txt|html?|ya?ml|svg|env)"

PATH_PATTERN = rf"(?P<path>(?:[\w@.\-]+/)*[\w@\-][\w@.\-]*\.{_EXTENSIONS}(?![\w\-]))"

_FENCE_RE = re.compile(r"^[ \t]*(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^\n`]*?)[ \t]*$")

_LABEL_WORD = r"(?:(?:file(?:name)?|path)[ \t]*:[ \t]*)?"

# `// src/App.tsx`, `/* File: App.tsx */`, `<!-- index.css -->`
_COMMENT_LABEL_RE = re.compile(
    rf"^[ \t]*(?://+|/\*+|<!--)[ \t]*{_LABEL_WORD}[`*_]*{PATH_PATTERN}[`*_]*[ \t]*(?:\*+/|-->)?[ \t]*$",
    re.IGNORECASE,
)

# `### src/App.tsx`, `## 2. File: App.tsx`
_HEADING_LABEL_RE = re.compile(
    rf"^[ \t]*#{{1,6}}[ \t]+(?:\d+\.[ \t]*)?{_LABEL_WORD}[`*_]*{PATH_PATTERN}[`*_]*[ \t]*:?[ \t]*$",
    re.IGNORECASE,
)

# `**App.tsx**`, `` `src/App.tsx`: ``, `- **src/App.tsx**`
_EMPHASIS_LABEL_RE = re.compile(
    rf"^[ \t]*(?:[-*][ \t]+)?[`*_]+{_LABEL_WORD}{PATH_PATTERN}[`*_]+[ \t]*:?[ \t]*$",
    re.IGNORECASE,
)

# `File: src/App.tsx`
_PLAIN_LABEL_RE = re.compile(
    rf"^[ \t]*(?:file(?:name)?|path)[ \t]*:[ \t]*[`*_]*{PATH_PATTERN}[`*_]*[ \t]*$",
    re.IGNORECASE,
)

_INFO_PATH_RE = re.compile(PATH_PATTERN)

# The canonical marker, as emitted by this module.
MARKER_RE = re.compile(rf"^// {PATH_PATTERN}[ \t]*$", re.MULTILINE)

_BLANK_RUN_RE = re.compile(r"\n(?:[ \t]*\n){2,}")


@dataclass(frozen=True)
class _Fence:
    line: int
    char: str
    length: int
    info: str


def marker(path: str) -> str:
    return f"// {path}"


def label_path(line: str) -> str | None:
    """Return the file path a label line names, or None for any other line."""
    for pattern in (_COMMENT_LABEL_RE, _HEADING_LABEL_RE, _EMPHASIS_LABEL_RE, _PLAIN_LABEL_RE):
        m = pattern.match(line)
        if m:
            return m.group("path")
    return None


def _info_path(info: str) -> str | None:
    m = _INFO_PATH_RE.search(info)
    return m.group("path") if m else None


def _pair_fences(lines: list[str]) -> tuple[list[tuple[_Fence, _Fence | None]], bool]:
    """
    Pair opening and closing fence lines.

    Returns (blocks, balanced). A block whose closing fence never appears is
    returned with None and makes the document unbalanced.
    """
    blocks: list[tuple[_Fence, _Fence | None]] = []
    opening: _Fence | None = None
    for index, line in enumerate(lines):
        m = _FENCE_RE.match(line)
        if not m:
            continue
        fence = _Fence(index, m.group("fence")[0], len(m.group("fence")), m.group("info"))
        if opening is None:
            opening = fence
        elif fence.char == opening.char and fence.length >= opening.length and not fence.info:
            blocks.append((opening, fence))
            opening = None
    if opening is not None:
        blocks.append((opening, None))
    balanced = bool(blocks) and all(close is not None for _, close in blocks)
    return blocks, balanced


def strip_fences(text: str, diagnostics: Diagnostics | None = None) -> str:
    """
    Remove documentation fences.

    With balanced fences, only fenced content and file labels survive. With
    stray or unclosed fences, just the fence lines are removed.
    """
    lines = text.split("\n")
    blocks, balanced = _pair_fences(lines)

    fence_lines: dict[int, _Fence] = {}
    inside: set[int] = set()
    for opening, closing in blocks:
        fence_lines[opening.line] = opening
        if closing is not None:
            fence_lines[closing.line] = closing
            inside.update(range(opening.line + 1, closing.line))

    out: list[str] = []
    dropped = 0
    for index, line in enumerate(lines):
        fence = fence_lines.get(index)
        if fence is not None:
            path = _info_path(fence.info)
            if path:
                out.append(marker(path))
            continue
        if index in inside:
            out.append(line)
            continue
        path = label_path(line)
        if path:
            out.append(marker(path))
        elif not balanced:
            out.append(line)
        elif line.strip():
            dropped += 1

    if diagnostics is not None and blocks:
        diagnostics.info(PASS, f"removed {len(fence_lines)} fence line(s), dropped {dropped} prose line(s)")
    return "\n".join(out)


def canonicalize_markers(text: str) -> str:
    """Rewrite every comment-style file label line to `// <path>`."""
    lines = text.split("\n")
    for index, line in enumerate(lines):
        m = _COMMENT_LABEL_RE.match(line)
        if m:
            lines[index] = marker(m.group("path"))
    return "\n".join(lines)


def find_markers(text: str) -> list[re.Match[str]]:
    return list(MARKER_RE.finditer(text))


def strip_markers(text: str) -> str:
    """Remove canonical marker lines (single-file case)."""
    return MARKER_RE.sub("", text)


def collapse_blank_lines(text: str) -> str:
    """Squeeze runs of blank lines down to one and trim the ends."""
    return _BLANK_RUN_RE.sub("\n\n", text).strip()


def normalize_source(code: str, diagnostics: Diagnostics | None = None) -> str:
    """Fences out, labels canonical. Markers are kept for the merger."""
    text = code.replace("\r\n", "\n")
    text = strip_fences(text, diagnostics)
    text = canonicalize_markers(text)
    if diagnostics is not None:
        diagnostics.info(PASS, f"{len(find_markers(text))} file marker(s) found")
    return text
