"""
livepreview — Type Annotation Stripper

Removes TypeScript's surface syntax so Babel's React preset can run the
code. Every rule is its own `str -> str` function over a fresh TSX parse, so
each can be tested on its own; `strip_types` runs them in RULES order.

The parser, not a pattern, decides what is a type position: markup is never
parsed as a type, so tag names and attributes survive untouched.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from tree_sitter import Node

from livepreview import syntax
from livepreview.syntax import Edit
from livepreview.types import Diagnostics

PASS = "types"

# React state/effect/memo/ref/context constructors whose type arguments are
# stripped first.
HOOK_NAMES = {
    "useState",
    "useReducer",
    "useMemo",
    "useCallback",
    "useRef",
    "useContext",
    "createContext",
    "useLayoutEffect",
    "useImperativeHandle",
    "forwardRef",
    "memo",
}

_TYPE_DECLARATIONS = {
    "interface_declaration",
    "type_alias_declaration",
    "ambient_declaration",
    "function_signature",
    "abstract_method_signature",
    "index_signature",
}

_ANNOTATIONS = {
    "type_annotation",
    "type_predicate_annotation",
    "asserts_annotation",
    "omitting_type_annotation",
    "adding_type_annotation",
    "opting_type_annotation",
}

# Nodes where a `?` or `!` after the name is type syntax.
_OPTIONAL_MARK_PARENTS = {"optional_parameter", "public_field_definition", "method_definition"}
_DEFINITE_MARK_PARENTS = {"variable_declarator", "public_field_definition"}

_MODIFIER_TOKENS = {"readonly", "declare", "abstract", "override"}
_MODIFIER_PARENTS = {
    "public_field_definition",
    "method_definition",
    "required_parameter",
    "optional_parameter",
    "abstract_class_declaration",
}

_GENERIC_ARGUMENT_PARENTS = {
    "call_expression",
    "new_expression",
    "extends_clause",
    "instantiation_expression",
    "jsx_opening_element",
    "jsx_self_closing_element",
}


# ---------------------------------------------------------------------------
# Rule 1: interfaces, type aliases, ambient declarations, signatures
# ---------------------------------------------------------------------------


def _collect_type_declarations(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type not in _TYPE_DECLARATIONS:
            continue
        if node.type == "index_signature" and (node.parent is None or node.parent.type != "class_body"):
            continue
        target = node.parent if node.parent is not None and node.parent.type == "export_statement" else node
        yield syntax.delete_statement(target, source)
    for node in syntax.walk(root):
        # overload signatures inside a class body
        if node.type == "method_signature" and node.parent is not None and node.parent.type == "class_body":
            yield syntax.delete_statement(node, source)


def strip_type_declarations(code: str) -> str:
    return syntax.rewrite(code, _collect_type_declarations)


# ---------------------------------------------------------------------------
# Rule 2: namespaces become IIFE-built objects
# ---------------------------------------------------------------------------

_NAMESPACE_TYPES = {"internal_module", "module"}


def _namespace_node(statement: Node) -> Node | None:
    if statement.type in _NAMESPACE_TYPES:
        return statement
    if statement.type == "expression_statement" and statement.named_children:
        inner = statement.named_children[0]
        if inner.type in _NAMESPACE_TYPES:
            return inner
    return None


def _namespace_members(body: Node, source: bytes) -> list[str] | None:
    """
    Names a namespace body binds, in order. The module pass has usually removed
    the export keywords already, so every binding is returned, exported or not.
    None when nothing executable is left (only types and comments).
    """
    names: list[str] = []
    executable = False
    for statement in body.named_children:
        if statement.type == "export_statement":
            declaration = statement.child_by_field_name("declaration")
            if declaration is not None:
                statement = declaration
        if statement.type == "comment" or statement.type in _TYPE_DECLARATIONS:
            continue
        nested = _namespace_node(statement)
        if nested is not None:
            nested_body = nested.child_by_field_name("body")
            if nested_body is not None and _namespace_members(nested_body, source) is None:
                # removed along with its types
                continue
            statement = nested
        executable = True
        if statement.type in ("lexical_declaration", "variable_declaration"):
            for declarator in syntax.children_of_type(statement, "variable_declarator"):
                pattern = declarator.child_by_field_name("name")
                if pattern is None:
                    continue
                for part in syntax.walk(pattern):
                    if part.type in ("identifier", "shorthand_property_identifier_pattern"):
                        names.append(syntax.node_text(part, source))
        elif statement.type in syntax.DECLARATION_TYPES or statement.type in _NAMESPACE_TYPES:
            name = statement.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                names.append(syntax.node_text(name, source))
    return names if executable else None


def _collect_namespaces(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type not in _NAMESPACE_TYPES:
            continue
        name = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        # dotted (`A.B`) and quoted module names are left alone
        if name is None or body is None or name.type != "identifier":
            continue
        members = _namespace_members(body, source)
        statement = node.parent if node.parent is not None and node.parent.type == "expression_statement" else node
        if members is None:
            if statement.parent is not None and statement.parent.type == "export_statement":
                statement = statement.parent
            yield syntax.delete_statement(statement, source)
            continue
        header = f"const {syntax.node_text(name, source)} = (() => {{"
        exported = ", ".join(dict.fromkeys(members))
        footer = f"\n  return {{ {exported} }};\n}})();" if exported else "\n  return {};\n})();"
        yield Edit(node.start_byte, body.start_byte + 1, header.encode())
        for child in syntax.children_of_type(body, "export_statement"):
            declaration = child.child_by_field_name("declaration")
            if declaration is not None:
                yield syntax.delete_range(child.start_byte, declaration.start_byte)
        yield Edit(body.end_byte - 1, statement.end_byte, footer.encode())


def strip_namespaces(code: str) -> str:
    return syntax.rewrite(code, _collect_namespaces)


# ---------------------------------------------------------------------------
# Rule 3: enums become frozen object literals
# ---------------------------------------------------------------------------


def _enum_literal(node: Node, source: bytes) -> str | None:
    name = syntax.declared_name(node, source)
    body = node.child_by_field_name("body")
    if name is None or body is None:
        return None

    members: list[str] = []
    next_value: int | None = 0
    for member in body.named_children:
        if member.type == "comment":
            continue
        if member.type == "enum_assignment":
            key_node = member.child_by_field_name("name")
            value_node = member.child_by_field_name("value")
            if key_node is None or value_node is None:
                continue
            value = syntax.node_text(value_node, source)
            try:
                next_value = int(value) + 1
            except ValueError:
                next_value = None
        else:
            key_node = member
            if next_value is None:
                # TS rejects this too; keep the key rather than inventing a value
                value = "undefined"
            else:
                value = str(next_value)
                next_value += 1
        members.append(f"{syntax.node_text(key_node, source)}: {value}")
    return f"const {name} = Object.freeze({{ {', '.join(members)} }});"


def _collect_enums(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type != "enum_declaration":
            continue
        literal = _enum_literal(node, source)
        if literal is not None:
            yield Edit(node.start_byte, node.end_byte, literal.encode())


def strip_enums(code: str) -> str:
    return syntax.rewrite(code, _collect_enums)


# ---------------------------------------------------------------------------
# Rules 4 & 5: generic arguments (hooks first, then everything else)
# ---------------------------------------------------------------------------


def _callee_name(call: Node, source: bytes) -> str:
    callee = call.child_by_field_name("function")
    if callee is None:
        return ""
    return syntax.node_text(callee, source).rsplit(".", 1)[-1].strip()


def _collect_hook_generics(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type != "call_expression" or _callee_name(node, source) not in HOOK_NAMES:
            continue
        args = syntax.child_of_type(node, "type_arguments")
        if args is not None:
            yield syntax.delete(args)


def strip_hook_generics(code: str) -> str:
    return syntax.rewrite(code, _collect_hook_generics)


def _collect_generic_arguments(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type == "type_arguments" and node.parent is not None and node.parent.type in _GENERIC_ARGUMENT_PARENTS:
            yield syntax.delete(node)


def strip_generic_arguments(code: str) -> str:
    return syntax.rewrite(code, _collect_generic_arguments)


# ---------------------------------------------------------------------------
# Rule 6: type parameter declarations
# ---------------------------------------------------------------------------


def _collect_type_parameters(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type == "type_parameters":
            yield syntax.delete(node)


def strip_type_parameters(code: str) -> str:
    return syntax.rewrite(code, _collect_type_parameters)


# ---------------------------------------------------------------------------
# Rule 7: annotations on variables, parameters, returns and fields
# ---------------------------------------------------------------------------


def _collect_annotations(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type in _ANNOTATIONS:
            yield syntax.delete(node)
        elif node.type == "?" and node.parent is not None and node.parent.type in _OPTIONAL_MARK_PARENTS:
            yield syntax.delete(node)
        elif node.type == "!" and node.parent is not None and node.parent.type in _DEFINITE_MARK_PARENTS:
            yield syntax.delete(node)


def strip_type_annotations(code: str) -> str:
    return syntax.rewrite(code, _collect_annotations)


# ---------------------------------------------------------------------------
# Rule 8: assertions (`as T`, `satisfies T`, `x!`)
# ---------------------------------------------------------------------------


def _collect_assertions(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type in ("as_expression", "satisfies_expression"):
            operand = node.named_children[0] if node.named_children else None
            if operand is not None:
                yield syntax.delete_range(operand.end_byte, node.end_byte)
        elif node.type == "non_null_expression":
            bang = node.children[-1] if node.children else None
            if bang is not None and bang.type == "!":
                yield syntax.delete(bang)


def strip_type_assertions(code: str) -> str:
    return syntax.rewrite(code, _collect_assertions)


# ---------------------------------------------------------------------------
# Rule 9: class modifiers and implements clauses
# ---------------------------------------------------------------------------


def _parameter_property_names(constructor: Node, source: bytes) -> list[str]:
    params = constructor.child_by_field_name("parameters")
    if params is None:
        return []
    names: list[str] = []
    for param in params.named_children:
        if param.type not in ("required_parameter", "optional_parameter"):
            continue
        marked = any(c.type in ("accessibility_modifier", "readonly", "override_modifier") for c in param.children)
        pattern = param.child_by_field_name("pattern")
        if marked and pattern is not None and pattern.type == "identifier":
            names.append(syntax.node_text(pattern, source))
    return names


def _constructor_assignments(constructor: Node, source: bytes) -> Edit | None:
    """`constructor(private api: Api)` must still assign `this.api`."""
    names = _parameter_property_names(constructor, source)
    body = constructor.child_by_field_name("body")
    if not names or body is None:
        return None
    insert_at = body.start_byte + 1
    for statement in body.named_children:
        if syntax.node_text(statement, source).startswith("super("):
            insert_at = statement.end_byte
            break
    text = "".join(f" this.{name} = {name};" for name in names)
    return Edit(insert_at, insert_at, text.encode())


def _collect_modifiers(root: Node, source: bytes) -> Iterator[Edit]:
    for node in syntax.walk(root):
        if node.type in ("accessibility_modifier", "override_modifier"):
            yield syntax.delete_token(node, source)
        elif node.type in _MODIFIER_TOKENS and node.parent is not None and node.parent.type in _MODIFIER_PARENTS:
            yield syntax.delete_token(node, source)
        elif node.type == "implements_clause":
            yield syntax.delete_with_leading_space(node, source)
        elif node.type == "method_definition" and syntax.declared_name(node, source) == "constructor":
            edit = _constructor_assignments(node, source)
            if edit is not None:
                yield edit


def strip_modifiers(code: str) -> str:
    return syntax.rewrite(code, _collect_modifiers)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

Rule = Callable[[str], str]

RULES: tuple[tuple[str, Rule], ...] = (
    ("type declarations", strip_type_declarations),
    ("namespaces", strip_namespaces),
    ("enums", strip_enums),
    ("hook generics", strip_hook_generics),
    ("generic arguments", strip_generic_arguments),
    ("type parameters", strip_type_parameters),
    ("annotations", strip_type_annotations),
    ("assertions", strip_type_assertions),
    ("modifiers", strip_modifiers),
)


def strip_types(code: str, diagnostics: Diagnostics | None = None) -> str:
    """Apply every rule in order."""
    for name, rule in RULES:
        before = code
        code = rule(code)
        if diagnostics is not None and code != before:
            diagnostics.info(PASS, f"{name}: removed {len(before) - len(code)} character(s)")
    return code
