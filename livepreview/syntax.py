"""
livepreview — TSX Syntax Layer

Uses tree-sitter (TSX grammar) to locate module and type syntax by node type,
so the stripping passes can delete byte spans without ever confusing a type
position with a markup angle bracket.

Nothing here produces or returns a tree to callers outside the package:
passes ask for edits, this module applies them and hands back text.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

import tree_sitter_typescript as _ts_mod
from tree_sitter import Language, Node, Parser, Tree

_TSX = Language(_ts_mod.language_tsx())


# ---------------------------------------------------------------------------
# Node type groups
# ---------------------------------------------------------------------------

FUNCTION_VALUE_TYPES = {"arrow_function", "function_expression", "function", "generator_function"}

DECLARATION_TYPES = {
    "function_declaration",
    "generator_function_declaration",
    "class_declaration",
    "abstract_class_declaration",
    "lexical_declaration",
    "variable_declaration",
    "enum_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "ambient_declaration",
    "function_signature",
}

# Containers that hold statements which still count as "top level" for
# declaration scanning (error recovery may wrap statements in ERROR).
_TRANSPARENT_TYPES = {"export_statement", "ERROR"}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse(code: str) -> tuple[Tree, bytes]:
    """
    Parse TSX source. Returns the tree and the exact bytes it was parsed from.

    A fresh Parser per call keeps this safe to call from several threads.
    """
    source = code.encode()
    return Parser(_TSX).parse(source), source


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode()


def walk(node: Node) -> Iterator[Node]:
    """Pre-order walk over every node, named or anonymous."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def top_level(root: Node) -> Iterator[Node]:
    """
    Yield top-level statements, looking through export wrappers and ERROR
    nodes but never into function or class bodies.
    """
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        if node.type in _TRANSPARENT_TYPES:
            stack.extend(reversed(node.children))
            continue
        yield node


def child_of_type(node: Node, *types: str) -> Node | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


def children_of_type(node: Node, *types: str) -> list[Node]:
    return [child for child in node.children if child.type in types]


def declared_name(node: Node, source: bytes) -> str | None:
    name = node.child_by_field_name("name")
    if name is None:
        return None
    return node_text(name, source)


def anonymous_default_value(node: Node) -> Node | None:
    """The value of `export default <expression>` when it is not a bare identifier."""
    if node.type != "export_statement" or child_of_type(node, "default") is None:
        return None
    value = node.child_by_field_name("value")
    if value is None or value.type == "identifier":
        return None
    return value


def has_executable_declaration(code: str) -> bool:
    """
    True when the code declares at least one named function, class, enum or
    initialized binding at top level. An anonymous default export counts: the
    module pass binds it to a const.
    """
    tree, _ = parse(code)
    for node in top_level(tree.root_node):
        parent = node.parent
        if parent is not None and anonymous_default_value(parent) == node:
            return True
        if node.type in ("function_declaration", "generator_function_declaration", "enum_declaration"):
            return True
        if node.type in ("class_declaration", "abstract_class_declaration"):
            return True
        if node.type in ("lexical_declaration", "variable_declaration"):
            for declarator in children_of_type(node, "variable_declarator"):
                if declarator.child_by_field_name("value") is not None:
                    return True
        # namespace bodies are lowered to an IIFE-built const
        if node.type == "internal_module":
            return True
        if node.type == "expression_statement" and node.named_children:
            if node.named_children[0].type == "internal_module":
                return True
    return False


def top_level_bindings(code: str) -> set[str]:
    """Names bound at top level: functions, classes, enums and every identifier a declarator pattern binds."""
    tree, source = parse(code)
    names: set[str] = set()
    for node in top_level(tree.root_node):
        if node.type in ("lexical_declaration", "variable_declaration"):
            for declarator in children_of_type(node, "variable_declarator"):
                pattern = declarator.child_by_field_name("name")
                if pattern is None:
                    continue
                for part in walk(pattern):
                    if part.type in ("identifier", "shorthand_property_identifier_pattern"):
                        names.add(node_text(part, source))
        elif node.type in DECLARATION_TYPES:
            name = declared_name(node, source)
            if name:
                names.add(name)
    return names


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Edit:
    """Replace source[start:end] with text. Empty text deletes the span."""

    start: int
    end: int
    text: bytes = b""


def delete(node: Node) -> Edit:
    return Edit(node.start_byte, node.end_byte)


def delete_range(start: int, end: int) -> Edit:
    return Edit(start, end)


def delete_token(node: Node, source: bytes) -> Edit:
    """Delete a keyword/modifier and the blanks that follow it."""
    end = node.end_byte
    while end < len(source) and source[end] in b" \t":
        end += 1
    return Edit(node.start_byte, end)


def delete_with_leading_space(node: Node, source: bytes) -> Edit:
    """Delete a clause and the blanks in front of it (`class A implements B`)."""
    start = node.start_byte
    while start > 0 and source[start - 1] in b" \t":
        start -= 1
    return Edit(start, node.end_byte)


def delete_statement(node: Node, source: bytes) -> Edit:
    """
    Delete a whole statement. A trailing `;` is swallowed, and when the
    statement sits alone on its lines the indentation and line break go too.
    """
    start, end = node.start_byte, node.end_byte

    probe = end
    while probe < len(source) and source[probe] in b" \t":
        probe += 1
    if probe < len(source) and source[probe : probe + 1] == b";":
        end = probe + 1

    line_start = start
    while line_start > 0 and source[line_start - 1] in b" \t":
        line_start -= 1
    at_line_start = line_start == 0 or source[line_start - 1 : line_start] == b"\n"

    line_end = end
    while line_end < len(source) and source[line_end] in b" \t\r":
        line_end += 1
    at_line_end = line_end == len(source) or source[line_end : line_end + 1] == b"\n"

    if at_line_start and at_line_end:
        start = line_start
        end = min(line_end + 1, len(source))
    return Edit(start, end)


def apply_edits(source: bytes, edits: Iterable[Edit]) -> bytes:
    """
    Apply non-overlapping edits. When spans nest or overlap, the edit that
    starts first (and, on ties, the wider one) wins.
    """
    out: list[bytes] = []
    pos = 0
    for edit in sorted(edits, key=lambda e: (e.start, -e.end)):
        if edit.start < pos:
            continue
        out.append(source[pos : edit.start])
        out.append(edit.text)
        pos = max(pos, edit.end)
    out.append(source[pos:])
    return b"".join(out)


Collector = Callable[[Node, bytes], Iterable[Edit]]


def rewrite(code: str, collect: Collector) -> str:
    """Parse, collect edits over the tree, apply them. Returns code untouched when nothing matched."""
    tree, source = parse(code)
    edits = list(collect(tree.root_node, source))
    if not edits:
        return code
    return apply_edits(source, edits).decode()
