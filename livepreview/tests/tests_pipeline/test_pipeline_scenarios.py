"""
Pipeline -- End-to-End Scenarios

Covers:
  - Single default-exported component
  - Markdown-fenced TypeScript with an annotated const component
  - Two-file blob where the types file holds only interfaces
  - Empty input
  - A full multi-file LLM answer (prose, headings, fences, enum, hooks)
  - Failures inside a pass
"""

import pytest

from livepreview import pipeline
from livepreview.errors import EmptyInputError, TransformationError
from livepreview.pipeline import build_preview, transform
from livepreview.types import ComponentSource, SourceDocument

TODO_ANSWER = """Here's the todo app:

### src/types.ts
```ts
export interface Todo {
  id: number;
  title: string;
  done: boolean;
}
export enum Filter { All, Active, Done }
```

### src/components/TodoItem.tsx
```tsx
import React from 'react';
import { Todo } from '../types';

interface Props { todo: Todo; onToggle: (id: number) => void }

export const TodoItem: React.FC<Props> = ({ todo, onToggle }) => (
  <li className={todo.done ? 'done' : ''} onClick={() => onToggle(todo.id)}>{todo.title}</li>
);
```

### src/App.tsx
```tsx
import React, { useState } from 'react';
import { TodoItem } from './components/TodoItem';
import { Todo, Filter } from './types';

export default function App() {
  const [todos, setTodos] = useState<Todo[]>([]);
  const [filter] = useState<Filter>(Filter.All);
  return <ul>{todos.map(t => <TodoItem key={t.id} todo={t} onToggle={() => {}} />)}</ul>;
}
```

Let me know if you need anything else!
"""


class TestScenarios:
    def test_single_default_export(self):
        result = transform('export default function Card() {\n  return <div className="card">Card</div>;\n}')

        assert result.component_name == "Card"
        assert result.component_source is ComponentSource.EXPORT_DEFAULT
        assert "export" not in result.processed_code
        assert not result.is_multi_file

    def test_fenced_typescript_const_component(self):
        code = "```tsx\nconst List: React.FC<Props> = () => {\n  return <ul />;\n};\n```"
        result = transform(code)

        assert "```" not in result.processed_code
        assert ": React.FC<Props>" not in result.processed_code
        assert result.processed_code.startswith("const List = () => {")
        assert result.component_name == "List"

    def test_types_only_file_excluded(self):
        code = (
            "// types.ts\nexport interface User { id: number; name: string }\n\n"
            "// App.tsx\nconst App = () => <div>Hello</div>;\nexport default App;\n"
        )
        result = transform(code)

        assert result.is_multi_file
        assert [f.path for f in result.files] == ["App.tsx"]
        assert [s.path for s in result.skipped] == ["types.ts"]
        assert "interface User" not in result.processed_code
        assert result.component_name == "App"

    def test_root_file_with_anonymous_default_export(self):
        for app in (
            "export default () => <main><Header /></main>;",
            "export default function () {\n  return <main><Header /></main>;\n}",
        ):
            code = "// Header.tsx\nfunction Header() { return <h1>Hi</h1>; }\n\n// App.tsx\n" + app + "\n"
            result = transform(code)

            assert [f.path for f in result.files] == ["Header.tsx", "App.tsx"], app
            assert result.skipped == []
            assert result.component_name == "DefaultExport"
            assert result.component_source is ComponentSource.EXPORT_DEFAULT
            assert "<main><Header /></main>" in result.processed_code

    def test_namespace_lowered_to_const(self):
        result = transform("namespace Utils { export const a = 1; }\nconst App = () => <div>{Utils.a}</div>;")

        assert result.processed_code.startswith("const Utils = (() => {")
        assert "return { a };" in result.processed_code
        assert "namespace" not in result.processed_code
        assert result.component_name == "App"

    def test_empty_input(self):
        with pytest.raises(EmptyInputError):
            transform("   \n\t")
        with pytest.raises(EmptyInputError):
            transform(None)

    def test_empty_input_document(self):
        doc = build_preview(SourceDocument(""))
        assert not doc.ok
        assert doc.error == "No code provided to render"


class TestTodoAnswer:
    def test_structure(self):
        result = transform(TODO_ANSWER)

        assert result.is_multi_file
        assert [f.path for f in result.files] == ["src/types.ts", "src/components/TodoItem.tsx", "src/App.tsx"]
        assert result.component.name == "App"
        assert result.component.source is ComponentSource.EXPORT_DEFAULT

    def test_processed_code(self):
        code = transform(TODO_ANSWER).processed_code

        assert "Here's the todo app" not in code
        assert "Let me know" not in code
        assert "const Filter = Object.freeze({ All: 0, Active: 1, Done: 2 });" in code
        assert "const TodoItem = ({ todo, onToggle }) => (" in code
        assert "useState([])" in code
        assert "useState(Filter.All)" in code
        assert "import" not in code
        assert "interface" not in code
        assert code.index("const Filter") < code.index("const TodoItem") < code.index("function App()")

    def test_imports_recorded(self):
        result = transform(TODO_ANSWER)
        sources = {b.source for b in result.imports}
        assert sources == {"react", "../types", "./components/TodoItem", "./types"}

    def test_document(self):
        doc = build_preview(SourceDocument(TODO_ANSWER, class_name="h-full"), token=4)

        assert doc.ok
        assert doc.token == 4
        assert doc.component_name == "App"
        assert 'const useState = __lp.pick("React", "useState");' in doc.html
        assert "} = React;" not in doc.html
        assert "React.createElement(App)" in doc.html


class TestFailures:
    def test_pass_failure_wrapped(self, monkeypatch):
        def boom(code, diagnostics=None):
            raise ValueError("bad tree")

        monkeypatch.setattr(pipeline, "strip_types", boom)
        with pytest.raises(TransformationError) as exc_info:
            transform("const App = () => null;")

        assert exc_info.value.pass_name == "types"
        assert str(exc_info.value) == "types failed: bad tree"

    def test_pass_failure_becomes_error_document(self, monkeypatch):
        def boom(code, diagnostics=None):
            raise ValueError("bad tree")

        monkeypatch.setattr(pipeline, "strip_types", boom)
        doc = build_preview(SourceDocument("const App = () => null;"), token=2)

        assert not doc.ok
        assert doc.error == "types failed: bad tree"
        assert doc.token == 2


class TestDiagnostics:
    def test_each_pass_reports(self):
        result = transform(TODO_ANSWER)
        passes = {d.pass_name for d in result.diagnostics}
        assert {"normalize", "merge", "modules", "types", "resolve"} <= passes

    def test_fallback_is_a_warning_not_an_error(self):
        result = transform("const x = 1;")
        assert result.component_name == "App"
        assert result.component_source is ComponentSource.FALLBACK
        assert any(d.level == "warning" and d.pass_name == "resolve" for d in result.diagnostics)
