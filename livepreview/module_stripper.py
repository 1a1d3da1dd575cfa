"""
livepreview — Module Syntax Stripper

The sandbox has no module loader, so:
  - import statements are deleted (their bindings are recorded first, the
    harness uses them to wire globals and placeholders)
  - `export` / `export default` keywords are dropped from declarations
  - bare default exports (`export default App;`) are deleted, however many
    of them a naive multi-file merge produced, and their names recorded
  - anonymous default exports are bound to `DefaultExport`

Idempotent: a second run finds nothing to do.
"""

from __future__ import annotations

import logging
import re

from tree_sitter import Node

from livepreview import syntax
from livepreview.syntax import Edit
from livepreview.types import Diagnostics, ImportBinding, ModuleStripResult

logger = logging.getLogger(__name__)

PASS = "modules"

ANONYMOUS_DEFAULT_BINDING = "DefaultExport"

_AS_DEFAULT_RE = re.compile(r"^\s*([A-Za-z_$][\w$]*)\s+as\s+default\s*$")


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


def _string_value(node: Node, source: bytes) -> str:
    return syntax.node_text(node, source)[1:-1]


def _import_bindings(node: Node, source: bytes) -> list[ImportBinding]:
    """Bindings of one import_statement. Type-only imports bind nothing."""
    if syntax.child_of_type(node, "type") is not None:
        return []
    source_node = syntax.child_of_type(node, "string")
    clause = syntax.child_of_type(node, "import_clause")
    if source_node is None or clause is None:
        return []

    module = _string_value(source_node, source)
    bindings: list[ImportBinding] = []
    for part in clause.children:
        if part.type == "identifier":
            bindings.append(ImportBinding(module, "default", syntax.node_text(part, source)))
        elif part.type == "namespace_import":
            name = syntax.child_of_type(part, "identifier")
            if name is not None:
                bindings.append(ImportBinding(module, "*", syntax.node_text(name, source)))
        elif part.type == "named_imports":
            for spec in syntax.children_of_type(part, "import_specifier"):
                if syntax.child_of_type(spec, "type") is not None:
                    continue
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                if name is None:
                    continue
                imported = syntax.node_text(name, source)
                local = syntax.node_text(alias, source) if alias is not None else imported
                bindings.append(ImportBinding(module, imported, local))
    return bindings


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


def _export_edits(node: Node, source: bytes, defaults: list[str]) -> list[Edit]:
    keyword = syntax.child_of_type(node, "export")
    if keyword is None:
        return []
    is_default = syntax.child_of_type(node, "default") is not None
    declaration = node.child_by_field_name("declaration")
    value = node.child_by_field_name("value")

    if declaration is not None:
        name = syntax.declared_name(declaration, source)
        if is_default and declaration.type not in ("interface_declaration", "type_alias_declaration"):
            if name is None:
                defaults.append(ANONYMOUS_DEFAULT_BINDING)
                return [Edit(keyword.start_byte, declaration.start_byte, f"const {ANONYMOUS_DEFAULT_BINDING} = ".encode())]
            defaults.append(name)
        return [syntax.delete_range(keyword.start_byte, declaration.start_byte)]

    if is_default and value is not None:
        if value.type == "identifier":
            defaults.append(syntax.node_text(value, source))
            return [syntax.delete_statement(node, source)]
        defaults.append(ANONYMOUS_DEFAULT_BINDING)
        return [Edit(keyword.start_byte, value.start_byte, f"const {ANONYMOUS_DEFAULT_BINDING} = ".encode())]

    # export { a, b as default } / export * from / export = x / re-exports
    clause = syntax.child_of_type(node, "export_clause")
    if clause is not None and syntax.child_of_type(node, "from") is None:
        for spec in syntax.children_of_type(clause, "export_specifier"):
            m = _AS_DEFAULT_RE.match(syntax.node_text(spec, source))
            if m:
                defaults.append(m.group(1))
    return [syntax.delete_statement(node, source)]


# ---------------------------------------------------------------------------
# Line sweep for code the parser could not make sense of
# ---------------------------------------------------------------------------

_IMPORT_LINE_RE = re.compile(
    r"^[ \t]*import\s+(?:[\w*${}\s,]+?\s+from\s*)?['\"][^'\"\n]+['\"][ \t]*;?[ \t]*(?:\n|$)",
    re.MULTILINE,
)
_DEFAULT_IDENT_RE = re.compile(r"^[ \t]*export\s+default\s+([A-Za-z_$][\w$]*)[ \t]*;?[ \t]*(?:\n|$)", re.MULTILINE)
_DEFAULT_DECL_RE = re.compile(
    r"^([ \t]*)export\s+default\s+((?:async\s+)?(?:function\s*\*?|class)\s+([A-Za-z_$][\w$]*))",
    re.MULTILINE,
)
_EXPORT_DECL_RE = re.compile(
    r"^([ \t]*)export\s+(?=(?:declare\s+|abstract\s+|async\s+)*(?:const|let|var|function|class|interface|type|enum|namespace)\b)",
    re.MULTILINE,
)
_EXPORT_LIST_RE = re.compile(
    r"^[ \t]*export\s*(?:type\s*)?(?:\{[^}]*\}|\*(?:\s+as\s+[\w$]+)?)(?:\s*from\s*['\"][^'\"]+['\"])?[ \t]*;?[ \t]*(?:\n|$)",
    re.MULTILINE,
)
_DEFAULT_EXPR_RE = re.compile(r"^([ \t]*)export\s+default\s+", re.MULTILINE)


def _sweep(code: str, defaults: list[str]) -> str:
    """Regex fallback applied only when the parse tree has errors."""
    code = _IMPORT_LINE_RE.sub("", code)

    def _ident(m: re.Match[str]) -> str:
        defaults.append(m.group(1))
        return ""

    def _decl(m: re.Match[str]) -> str:
        defaults.append(m.group(3))
        return m.group(1) + m.group(2)

    def _expr(m: re.Match[str]) -> str:
        defaults.append(ANONYMOUS_DEFAULT_BINDING)
        return f"{m.group(1)}const {ANONYMOUS_DEFAULT_BINDING} = "

    code = _DEFAULT_IDENT_RE.sub(_ident, code)
    code = _DEFAULT_DECL_RE.sub(_decl, code)
    code = _EXPORT_DECL_RE.sub(r"\1", code)
    code = _EXPORT_LIST_RE.sub("", code)
    code = _DEFAULT_EXPR_RE.sub(_expr, code)
    return code


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def strip_modules(code: str, diagnostics: Diagnostics | None = None) -> ModuleStripResult:
    """Remove import/export syntax, keeping every declaration."""
    tree, source = syntax.parse(code)
    defaults: list[str] = []
    imports: list[ImportBinding] = []
    edits: list[Edit] = []

    for node in syntax.walk(tree.root_node):
        if node.type == "import_statement":
            imports.extend(_import_bindings(node, source))
            edits.append(syntax.delete_statement(node, source))
        elif node.type == "export_statement":
            edits.extend(_export_edits(node, source, defaults))

    stripped = syntax.apply_edits(source, edits).decode() if edits else code

    if tree.root_node.has_error:
        logger.debug("modules: parse errors present, running line sweep")
        stripped = _sweep(stripped, defaults)

    if diagnostics is not None:
        diagnostics.info(
            PASS,
            f"removed {len(imports)} import binding(s); default export(s): {', '.join(defaults) or 'none'}",
        )
    return ModuleStripResult(code=stripped, default_exports=defaults, imports=imports)
