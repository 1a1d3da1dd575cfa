"""
livepreview — Component Name Resolver

Picks the symbol the harness mounts. Tiers, first hit wins:
  1. default export recorded by the module stripper (last one)
  2. last capitalized const/let/var bound to a function or component wrapper
  3. last capitalized function declaration
  4. last capitalized class declaration
  5. PascalCase token from the filename hint
  6. FALLBACK_COMPONENT

"Last" because the merger puts the root file at the end.
"""

from __future__ import annotations

import re

from tree_sitter import Node

from livepreview import syntax
from livepreview.types import ComponentDescriptor, ComponentSource, Diagnostics

PASS = "resolve"

FALLBACK_COMPONENT = "App"

# Calls whose result is still a component: memo(...), React.forwardRef(...)
COMPONENT_WRAPPERS = {"memo", "forwardRef", "observer", "lazy"}

_GENERIC_FILE_STEMS = {"index", "main"}
_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def is_component_name(name: str) -> bool:
    # PascalCase; ALL_CAPS constants are not components
    return bool(name) and name[0].isupper() and any(c.islower() for c in name)


def _is_component_value(value: Node, source: bytes) -> bool:
    while value.type == "parenthesized_expression" and value.named_children:
        value = value.named_children[0]
    if value.type in syntax.FUNCTION_VALUE_TYPES:
        return True
    if value.type == "call_expression":
        callee = value.child_by_field_name("function")
        if callee is not None:
            return syntax.node_text(callee, source).rsplit(".", 1)[-1] in COMPONENT_WRAPPERS
    return False


def _declared_candidates(code: str) -> dict[ComponentSource, str]:
    """Last capitalized declaration per tier, scanning top level only."""
    tree, source = syntax.parse(code)
    found: dict[ComponentSource, str] = {}
    for node in syntax.top_level(tree.root_node):
        if node.type in ("lexical_declaration", "variable_declaration"):
            for declarator in syntax.children_of_type(node, "variable_declarator"):
                name_node = declarator.child_by_field_name("name")
                value = declarator.child_by_field_name("value")
                if name_node is None or value is None or name_node.type != "identifier":
                    continue
                name = syntax.node_text(name_node, source)
                if is_component_name(name) and _is_component_value(value, source):
                    found[ComponentSource.DECLARED_CONST] = name
        elif node.type in ("function_declaration", "generator_function_declaration"):
            name = syntax.declared_name(node, source)
            if name and is_component_name(name):
                found[ComponentSource.DECLARED_FUNCTION] = name
        elif node.type in ("class_declaration", "abstract_class_declaration"):
            name = syntax.declared_name(node, source)
            if name and is_component_name(name):
                found[ComponentSource.DECLARED_CLASS] = name
    return found


def name_from_filename(filename: str | None) -> str | None:
    """`src/user-card.tsx` -> `UserCard`. None for index/main or nothing usable."""
    if not filename:
        return None
    stem = filename.replace("\\", "/").rsplit("/", 1)[-1].split(".", 1)[0]
    if stem.lower() in _GENERIC_FILE_STEMS:
        return None
    words = _WORD_RE.findall(stem)
    if not words:
        return None
    name = "".join(w[0].upper() + w[1:] for w in words)
    if name[0].isdigit():
        return None
    return name


def resolve_component(
    code: str,
    filename: str | None = None,
    default_exports: list[str] | None = None,
    diagnostics: Diagnostics | None = None,
) -> ComponentDescriptor:
    """Best-guess entry component. Never returns an empty name."""
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    if default_exports:
        descriptor = ComponentDescriptor(default_exports[-1], ComponentSource.EXPORT_DEFAULT)
    else:
        found = _declared_candidates(code)
        for tier in (ComponentSource.DECLARED_CONST, ComponentSource.DECLARED_FUNCTION, ComponentSource.DECLARED_CLASS):
            if tier in found:
                descriptor = ComponentDescriptor(found[tier], tier)
                break
        else:
            from_file = name_from_filename(filename)
            if from_file:
                descriptor = ComponentDescriptor(from_file, ComponentSource.FILENAME)
            else:
                diagnostics.warning(PASS, f"no component found, falling back to {FALLBACK_COMPONENT}")
                return ComponentDescriptor(FALLBACK_COMPONENT, ComponentSource.FALLBACK)

    diagnostics.info(PASS, f"component {descriptor.name} ({descriptor.source.value})")
    return descriptor
