"""
File Classifier & Merger Tests

Covers:
  - Splitting on markers, last copy of a repeated path wins
  - Skip reasons: stylesheets/data, .d.ts, tool configs, entry points,
    ambient-only and declaration-free files
  - Ordering: type files first, App last, others in input order
  - Banners between merged files
  - Fail-soft when nothing survives
  - Single-file inputs
"""

from livepreview.files import banner, classify_file, merge_files, order_files, split_logical_files
from livepreview.types import Diagnostics, LogicalFile

TODO_APP = """// src/types.ts
export interface Todo { id: number; title: string }

// src/App.tsx
export default function App() { return <TodoList /> }

// src/components/TodoList.tsx
export const TodoList = () => <ul />;

// src/index.tsx
ReactDOM.createRoot(document.getElementById('root')).render(<App />);

// src/index.css
body { margin: 0 }
"""


# ============================================================================
# Splitting
# ============================================================================


class TestSplit:
    def test_split_paths_and_content(self):
        preamble, files = split_logical_files("// a.tsx\nconst A = 1;\n\n// b.tsx\nconst B = 2;\n")
        assert preamble == ""
        assert [(f.path, f.content) for f in files] == [("a.tsx", "const A = 1;"), ("b.tsx", "const B = 2;")]

    def test_no_markers(self):
        preamble, files = split_logical_files("const A = 1;")
        assert preamble == "const A = 1;"
        assert files == []

    def test_repeated_path_last_copy_wins(self):
        _, files = split_logical_files("// a.tsx\nconst A = 1;\n// b.tsx\nconst B = 2;\n// a.tsx\nconst A = 3;\n")
        assert [(f.path, f.content) for f in files] == [("b.tsx", "const B = 2;"), ("a.tsx", "const A = 3;")]


# ============================================================================
# Classification
# ============================================================================


class TestClassify:
    def test_component_file_included(self):
        assert classify_file(LogicalFile("src/Card.tsx", "export const Card = () => null;")) is None

    def test_non_script_extensions_skipped(self):
        for path in ("src/index.css", "package.json", "README.md", "styles/theme.scss", ".env"):
            assert classify_file(LogicalFile(path, "x")) is not None, path

    def test_declaration_file_skipped(self):
        assert classify_file(LogicalFile("src/global.d.ts", "declare const X: string;")) == "type declaration file"

    def test_tool_config_skipped(self):
        reason = classify_file(LogicalFile("vite.config.ts", "export default defineConfig({});"))
        assert reason == "tooling config module"

    def test_entry_point_skipped(self):
        for path in ("src/index.tsx", "src/main.jsx"):
            reason = classify_file(LogicalFile(path, "const root = createRoot(el);"))
            assert reason == "entry point (mounting only)", path

    def test_ambient_only_skipped(self):
        reason = classify_file(LogicalFile("src/env.ts", "declare const VERSION: string;"))
        assert reason == "ambient declarations only"

    def test_types_only_skipped(self):
        reason = classify_file(LogicalFile("src/types.ts", "export interface A { x: number }\nexport type B = A[];"))
        assert reason == "no executable declarations"

    def test_anonymous_default_export_included(self):
        for content in (
            "export default () => <main />;",
            "export default function () { return <main />; }",
            "export default class extends React.Component { render() { return null; } }",
            "export default memo(() => <main />);",
        ):
            assert classify_file(LogicalFile("src/App.tsx", content)) is None, content

    def test_default_export_of_identifier_alone_skipped(self):
        reason = classify_file(LogicalFile("src/reexport.ts", "export default Card;"))
        assert reason == "no executable declarations"

    def test_types_file_with_values_included(self):
        content = "export interface A { x: number }\nexport const DEFAULT_A: A = { x: 1 };"
        assert classify_file(LogicalFile("src/types.ts", content)) is None


# ============================================================================
# Ordering
# ============================================================================


class TestOrdering:
    def test_types_first_app_last(self):
        files = [
            LogicalFile("src/App.tsx", "x"),
            LogicalFile("src/Header.tsx", "x"),
            LogicalFile("src/types/todo.ts", "x"),
            LogicalFile("src/Footer.tsx", "x"),
        ]
        assert [f.path for f in order_files(files)] == [
            "src/types/todo.ts",
            "src/Header.tsx",
            "src/Footer.tsx",
            "src/App.tsx",
        ]

    def test_several_root_files_keep_input_order(self):
        files = [LogicalFile("a/App.tsx", "x"), LogicalFile("Card.tsx", "x"), LogicalFile("b/app.jsx", "x")]
        assert [f.path for f in order_files(files)] == ["Card.tsx", "a/App.tsx", "b/app.jsx"]

    def test_dotted_types_file_first(self):
        files = [LogicalFile("Card.tsx", "x"), LogicalFile("todo.types.ts", "x")]
        assert [f.path for f in order_files(files)] == ["todo.types.ts", "Card.tsx"]


# ============================================================================
# Merging
# ============================================================================


class TestMerge:
    def test_todo_app_merge(self):
        result = merge_files(TODO_APP)

        assert result.is_multi_file
        assert [f.path for f in result.files] == ["src/components/TodoList.tsx", "src/App.tsx"]
        assert {s.path for s in result.skipped} == {"src/types.ts", "src/index.tsx", "src/index.css"}

    def test_banners_and_order(self):
        code = merge_files(TODO_APP).code

        assert code.count("// ============") == 2
        assert code.index(banner("src/components/TodoList.tsx")) < code.index(banner("src/App.tsx"))
        assert "body { margin: 0 }" not in code
        assert "ReactDOM.createRoot" not in code
        assert "interface Todo" not in code

    def test_type_file_with_values_goes_first(self):
        text = (
            "// src/App.tsx\nexport default function App() { return null }\n"
            "// src/types.ts\nexport const PRIORITIES = ['low', 'high'];\n"
        )
        result = merge_files(text)
        assert [f.path for f in result.files] == ["src/types.ts", "src/App.tsx"]
        assert result.code.startswith(banner("src/types.ts"))

    def test_root_with_anonymous_default_export_kept_last(self):
        text = (
            "// Header.tsx\nfunction Header() { return <h1>Hi</h1>; }\n\n"
            "// App.tsx\nexport default () => <main><Header /></main>;\n"
        )
        result = merge_files(text)

        assert [f.path for f in result.files] == ["Header.tsx", "App.tsx"]
        assert result.skipped == []
        assert result.code.rstrip().endswith("export default () => <main><Header /></main>;")

    def test_fail_soft_when_nothing_survives(self):
        diagnostics = Diagnostics()
        result = merge_files("// a.ts\ninterface A {}\n// b.ts\ntype B = string;\n", diagnostics)

        assert not result.is_multi_file
        assert "interface A {}" in result.code
        assert "type B = string;" in result.code
        assert "// a.ts" not in result.code
        assert any(d.level == "warning" for d in diagnostics)

    def test_preamble_code_kept(self):
        text = "const theme = { dark: true };\n// a.tsx\nconst A = () => null;\n// App.tsx\nconst App = () => null;\n"
        code = merge_files(text).code
        assert code.startswith("const theme = { dark: true };")

    def test_preamble_without_declarations_dropped(self):
        text = "'use client';\n// a.tsx\nconst A = () => null;\n// App.tsx\nconst App = () => null;\n"
        assert "use client" not in merge_files(text).code


class TestSingleFile:
    def test_plain_code_unchanged(self):
        code = "const App = () => <div />;"
        result = merge_files(code)
        assert not result.is_multi_file
        assert result.code == code

    def test_single_marker_removed(self):
        result = merge_files("// src/App.tsx\nconst App = () => null;")
        assert not result.is_multi_file
        assert result.code == "const App = () => null;"

    def test_repeated_single_path_is_single_file(self):
        result = merge_files("// App.tsx\nconst App = 1;\n// App.tsx\nconst App = () => null;\n")
        assert not result.is_multi_file
        assert result.code == "const App = () => null;"
