"""
livepreview — Runtime Libraries

Third-party packages the sandbox can load from a CDN, and how a stripped
import of them maps onto the UMD global the script exposes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from livepreview.types import ImportBinding


@dataclass(frozen=True)
class Library:
    """A CDN-loadable package. modules maps import specifiers to window globals."""

    name: str
    scripts: tuple[str, ...]
    modules: dict[str, str] = field(default_factory=dict)
    usage: re.Pattern[str] | None = None


def react_scripts(version: str = "18") -> tuple[str, ...]:
    return (
        f"https://unpkg.com/react@{version}/umd/react.development.js",
        f"https://unpkg.com/react-dom@{version}/umd/react-dom.development.js",
    )


BABEL_SCRIPT = "https://unpkg.com/@babel/standalone/babel.min.js"
TAILWIND_SCRIPT = "https://cdn.tailwindcss.com"

# Always present in the harness.
BUILTIN_MODULES = {
    "react": "React",
    "react-dom": "ReactDOM",
    "react-dom/client": "ReactDOM",
}

LIBRARIES: tuple[Library, ...] = (
    Library(
        name="chartjs",
        scripts=(
            "https://cdn.jsdelivr.net/npm/chart.js@4.4.0/dist/chart.umd.min.js",
            "https://cdn.jsdelivr.net/npm/react-chartjs-2@5.2.0/dist/index.umd.js",
        ),
        modules={"chart.js": "Chart", "chart.js/auto": "Chart", "react-chartjs-2": "ReactChartjs2"},
        usage=re.compile(r"\bnew\s+Chart\s*\(|\bChartJS\b"),
    ),
    Library(
        name="socketio",
        scripts=("https://cdn.socket.io/4.7.2/socket.io.min.js",),
        modules={"socket.io-client": "io"},
        usage=re.compile(r"(?<![\w$.])io\s*\("),
    ),
    Library(
        name="axios",
        scripts=("https://cdn.jsdelivr.net/npm/axios@1.6.0/dist/axios.min.js",),
        modules={"axios": "axios"},
        usage=re.compile(r"\baxios\s*[.(]"),
    ),
    Library(
        name="lodash",
        scripts=("https://cdn.jsdelivr.net/npm/lodash@4.17.21/lodash.min.js",),
        modules={"lodash": "_", "lodash-es": "_"},
        usage=re.compile(r"(?<![\w$.])_\.[A-Za-z]\w*\s*\("),
    ),
    Library(
        name="dayjs",
        scripts=("https://cdn.jsdelivr.net/npm/dayjs@1.11.10/dayjs.min.js",),
        modules={"dayjs": "dayjs"},
        usage=re.compile(r"(?<![\w$.])dayjs\s*\("),
    ),
)


def detect_libraries(code: str, imports: list[ImportBinding] | None = None) -> list[Library]:
    """Libraries the code imports or visibly calls, in LIBRARIES order."""
    sources = {binding.source for binding in imports or []}
    detected = []
    for library in LIBRARIES:
        if sources & library.modules.keys():
            detected.append(library)
        elif library.usage is not None and library.usage.search(code):
            detected.append(library)
    return detected


def module_globals(libraries: list[Library], extra: dict[str, str] | None = None) -> dict[str, str]:
    """Import specifier -> global name, for everything the document will load."""
    mapping = dict(BUILTIN_MODULES)
    for library in libraries:
        mapping.update(library.modules)
    mapping.update(extra or {})
    return mapping
