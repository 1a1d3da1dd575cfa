"""
Fence & Separator Normalizer Tests

Covers:
  - Balanced fences: fence lines and surrounding prose removed
  - Unbalanced fences: only the fence lines removed
  - Backtick and tilde fences, any language tag
  - File labels (headings, bold, comments, fence titles) become `// <path>`
  - Comment-like text mid-line is never treated as a label
  - Blank-line collapsing
"""

from livepreview.normalizer import (
    canonicalize_markers,
    collapse_blank_lines,
    find_markers,
    label_path,
    normalize_source,
    strip_fences,
    strip_markers,
)
from livepreview.types import Diagnostics


def marker_paths(text):
    return [m.group("path") for m in find_markers(text)]


# ============================================================================
# Fences
# ============================================================================


class TestBalancedFences:
    def test_fenced_block_keeps_only_code(self):
        text = "Here is your component:\n\n```tsx\nconst App = () => <div>Hi</div>;\n```\n\nEnjoy!"
        assert strip_fences(text) == "const App = () => <div>Hi</div>;"

    def test_tilde_fences(self):
        text = "~~~jsx\nconst A = 1;\n~~~"
        assert strip_fences(text) == "const A = 1;"

    def test_any_language_tag(self):
        for tag in ("typescript", "tsx", "javascript", "jsx", "ts", ""):
            text = f"```{tag}\nconst A = 1;\n```"
            assert strip_fences(text) == "const A = 1;", tag

    def test_longer_closing_fence_closes_block(self):
        text = "````tsx\nconst s = `x`;\n`````"
        assert strip_fences(text) == "const s = `x`;"

    def test_fence_with_info_does_not_close_block(self):
        text = "```md\n```ts\nconst A = 1;\n```"
        assert strip_fences(text) == "```ts\nconst A = 1;"

    def test_prose_count_recorded(self):
        diagnostics = Diagnostics()
        strip_fences("Intro line\n```tsx\nconst A = 1;\n```\nOutro line", diagnostics)
        messages = [d.message for d in diagnostics.for_pass("normalize")]
        assert messages == ["removed 2 fence line(s), dropped 2 prose line(s)"]


class TestUnbalancedFences:
    def test_unclosed_fence_removed(self):
        assert strip_fences("```tsx\nconst A = 1;\n").strip() == "const A = 1;"

    def test_prose_kept_when_unbalanced(self):
        out = strip_fences("Note: this compiles\n```tsx\nconst A = 1;")
        assert "Note: this compiles" in out
        assert "```" not in out

    def test_no_fences_is_identity(self):
        code = "const A = 1;\n\nfunction B() {}\n"
        assert strip_fences(code) == code


# ============================================================================
# Labels
# ============================================================================


class TestLabels:
    def test_heading_and_bold_labels_become_markers(self):
        text = (
            "### src/App.tsx\n```tsx\nexport default function App() {}\n```\n"
            "**src/types.ts**\n```ts\nexport type X = 1;\n```"
        )
        out = strip_fences(text)
        assert marker_paths(out) == ["src/App.tsx", "src/types.ts"]

    def test_fence_title_becomes_marker(self):
        out = strip_fences('```tsx title="src/App.tsx"\nconst App = () => null;\n```')
        assert out == "// src/App.tsx\nconst App = () => null;"

    def test_fence_colon_path_becomes_marker(self):
        out = strip_fences("```tsx:components/Card.tsx\nconst Card = () => null;\n```")
        assert marker_paths(out) == ["components/Card.tsx"]

    def test_label_variants(self):
        assert label_path("// src/App.tsx") == "src/App.tsx"
        assert label_path("/* File: src/App.tsx */") == "src/App.tsx"
        assert label_path("<!-- index.html -->") == "index.html"
        assert label_path("## 2. File: App.tsx") == "App.tsx"
        assert label_path("`src/hooks/useTodos.ts`:") == "src/hooks/useTodos.ts"
        assert label_path("File: package.json") == "package.json"

    def test_non_labels(self):
        assert label_path("const a = 1; // src/App.tsx") is None
        assert label_path("// renders the App.tsx root") is None
        assert label_path("# Overview") is None

    def test_canonicalize_comment_markers(self):
        text = "/* File: src/App.tsx */\nconst App = () => null;\n//   utils/format.ts\nconst f = 1;"
        out = canonicalize_markers(text)
        assert marker_paths(out) == ["src/App.tsx", "utils/format.ts"]

    def test_marker_text_inside_string_untouched(self):
        code = 'const s = "// src/App.tsx";\nconst t = `\n  <div>// not a file</div>\n`;'
        assert normalize_source(code) == code
        assert find_markers(code) == []


class TestStripMarkers:
    def test_strip_markers_removes_marker_lines_only(self):
        text = "// src/App.tsx\nconst App = () => null; // src/App.tsx"
        out = strip_markers(text)
        assert "const App = () => null; // src/App.tsx" in out
        assert find_markers(out) == []


# ============================================================================
# Whitespace
# ============================================================================


class TestCollapseBlankLines:
    def test_runs_collapse_to_one_blank_line(self):
        assert collapse_blank_lines("a\n\n\n\nb\n\n") == "a\n\nb"

    def test_whitespace_only_lines_count_as_blank(self):
        assert collapse_blank_lines("a\n  \n\t\n\nb") == "a\n\nb"

    def test_idempotent(self):
        once = collapse_blank_lines("\n\na\n\n\nb\n")
        assert collapse_blank_lines(once) == once

    def test_crlf_normalized(self):
        assert "\r" not in normalize_source("const A = 1;\r\nconst B = 2;\r\n")
