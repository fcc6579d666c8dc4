"""Scope and binding collection over a tree-sitter Python tree.

First pass of the Python front end: every scope-creating node gets a
:class:`ScopeInfo`, every name binding gets a :class:`Definition`, and the
identifier that introduces each binding is recorded as its declaration site.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from parse.syntax import Definition, Position, Scope, ScopeKind

if TYPE_CHECKING:
    from tree_sitter import Node

NodeKey = tuple[int, int, str]

_CONST_NAME = re.compile(r"^_*[A-Z][A-Z0-9_]*$")
_FINAL_ANNOTATION = re.compile(r"(^|\.)Final(\[|$)")

_COMPREHENSIONS = frozenset(
    {
        "list_comprehension",
        "set_comprehension",
        "dictionary_comprehension",
        "generator_expression",
    }
)
_TARGET_CONTAINERS = frozenset(
    {
        "pattern_list",
        "tuple_pattern",
        "list_pattern",
        "tuple",
        "list",
        "parenthesized_expression",
        "list_splat_pattern",
        "list_splat",
        "as_pattern_target",
    }
)


def node_key(node: Node) -> NodeKey:
    return (node.start_byte, node.end_byte, node.type)


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf8", errors="replace")


def node_position(path: str, node: Node) -> Position:
    return Position(path, node.start_point[0] + 1, node.start_point[1] + 1)


def is_constant_name(name: str) -> bool:
    return bool(_CONST_NAME.match(name))


@dataclass(eq=False)
class ClassInfo:
    definition: Definition
    scope: ScopeInfo
    bases: list[Node] = field(default_factory=list)
    instance_fields: dict[str, Definition] = field(default_factory=dict)


@dataclass(eq=False)
class TypeHint:
    """What a name is known to hold: an instance of, or a class itself.

    Either ``class_info`` is known directly (``self``/``cls``) or ``ref`` is
    an identifier node naming the class, to be resolved in ``scope``.
    """

    via: Literal["instance", "class"]
    class_info: ClassInfo | None = None
    ref: Node | None = None
    scope: ScopeInfo | None = None


@dataclass(eq=False)
class ScopeInfo:
    scope: Scope
    parent: ScopeInfo | None = None
    bindings: dict[str, Definition] = field(default_factory=dict)
    globals_: set[str] = field(default_factory=set)
    nonlocals: set[str] = field(default_factory=set)
    class_info: ClassInfo | None = None
    method_of: ClassInfo | None = None

    @property
    def kind(self) -> ScopeKind:
        return self.scope.kind

    def module(self) -> ScopeInfo:
        current = self
        while current.parent is not None:
            current = current.parent
        return current


@dataclass
class CollectedScopes:
    module: ScopeInfo
    by_node: dict[NodeKey, ScopeInfo]
    def_sites: dict[NodeKey, Definition]
    classes: dict[Definition, ClassInfo]
    hints: dict[Definition, TypeHint]


class ScopeCollector:
    """Collect scopes and bindings for one module."""

    def __init__(self, path: str, module_name: str) -> None:
        self.path = path
        module_scope = Scope("module", module_name, Position(path, 1, 1))
        self.module = ScopeInfo(module_scope)
        self.by_node: dict[NodeKey, ScopeInfo] = {}
        self.def_sites: dict[NodeKey, Definition] = {}
        self.classes: dict[Definition, ClassInfo] = {}
        self.hints: dict[Definition, TypeHint] = {}

    def collect(self, root: Node) -> CollectedScopes:
        self.by_node[node_key(root)] = self.module
        self._visit_children(root, self.module)
        return CollectedScopes(
            module=self.module,
            by_node=self.by_node,
            def_sites=self.def_sites,
            classes=self.classes,
            hints=self.hints,
        )

    def _visit_children(self, node: Node, scope: ScopeInfo) -> None:
        for child in node.named_children:
            self._visit(child, scope)

    def _visit(self, node: Node, scope: ScopeInfo) -> None:  # noqa: C901
        node_type = node.type
        if node_type == "function_definition":
            self._function(node, scope)
        elif node_type == "class_definition":
            self._class(node, scope)
        elif node_type == "lambda":
            self._lambda(node, scope)
        elif node_type in _COMPREHENSIONS:
            self._comprehension(node, scope)
        elif node_type == "assignment":
            self._assignment(node, scope)
        elif node_type == "augmented_assignment":
            left = node.child_by_field_name("left")
            if left is not None and left.type == "identifier":
                self._bind(scope, left, "var")
            self._visit_children(node, scope)
        elif node_type in {"for_statement", "for_in_clause"}:
            self._bind_targets(scope, node.child_by_field_name("left"))
            self._visit_children(node, scope)
        elif node_type == "named_expression":
            target = scope
            while target.kind == "comprehension" and target.parent is not None:
                target = target.parent
            name = node.child_by_field_name("name")
            if name is not None:
                self._bind(target, name, "var")
            self._visit_children(node, scope)
        elif node_type == "as_pattern":
            self._bind_targets(scope, node.child_by_field_name("alias"))
            self._visit_children(node, scope)
        elif node_type == "except_clause":
            self._except_alias(node, scope)
            self._visit_children(node, scope)
        elif node_type in {"import_statement", "import_from_statement"}:
            self._import(node, scope)
        elif node_type == "global_statement":
            scope.globals_.update(
                node_text(c) for c in node.named_children if c.type == "identifier"
            )
        elif node_type == "nonlocal_statement":
            scope.nonlocals.update(
                node_text(c) for c in node.named_children if c.type == "identifier"
            )
        else:
            self._visit_children(node, scope)

    def _new_scope(
        self, node: Node, kind: ScopeKind, name: str, parent: ScopeInfo
    ) -> ScopeInfo:
        info = ScopeInfo(
            Scope(kind, name, node_position(self.path, node), parent.scope),
            parent=parent,
        )
        self.by_node[node_key(node)] = info
        return info

    def _definition_kind(
        self, scope: ScopeInfo, name: str, annotation: Node | None
    ) -> str:
        if scope.kind != "module":
            return "var"
        if is_constant_name(name):
            return "const"
        if annotation is not None and _FINAL_ANNOTATION.search(node_text(annotation)):
            return "const"
        return "var"

    def _bind(
        self,
        scope: ScopeInfo,
        name_node: Node,
        kind: str,
        *,
        def_scope: Scope | None = None,
        is_field: bool | None = None,
    ) -> Definition | None:
        name = node_text(name_node)
        if not name:
            return None
        if name in scope.nonlocals:
            return None
        redirected = name in scope.globals_
        if redirected:
            scope = scope.module()
        existing = scope.bindings.get(name)
        if existing is not None:
            # Rebinding in the declaring scope redeclares; it is not a use.
            if not redirected:
                self.def_sites[node_key(name_node)] = existing
            return None
        if is_field is None:
            is_field = scope.kind == "class" and kind == "var"
        definition = Definition(
            name=name,
            kind=kind,
            pos=node_position(self.path, name_node),
            scope=def_scope if def_scope is not None else scope.scope,
            is_field=is_field,
        )
        scope.bindings[name] = definition
        self.def_sites[node_key(name_node)] = definition
        return definition

    def _bind_targets(self, scope: ScopeInfo, target: Node | None) -> None:
        for name_node in _target_identifiers(target):
            kind = self._definition_kind(scope, node_text(name_node), None)
            self._bind(scope, name_node, kind)

    def _function(self, node: Node, scope: ScopeInfo) -> None:
        name_node = node.child_by_field_name("name")
        func_name = node_text(name_node) or "<function>"
        if name_node is not None:
            self._bind(scope, name_node, "func")

        inner = self._new_scope(node, "function", func_name, scope)
        if scope.class_info is not None:
            inner.method_of = scope.class_info

        parameters = node.child_by_field_name("parameters")
        if parameters is not None:
            self._parameters(parameters, inner, scope, _decorator_names(node))
        return_type = node.child_by_field_name("return_type")
        if return_type is not None:
            self._visit(return_type, scope)
        body = node.child_by_field_name("body")
        if body is not None:
            self._visit_children(body, inner)

    def _parameters(
        self,
        parameters: Node,
        inner: ScopeInfo,
        outer: ScopeInfo,
        decorators: set[str],
    ) -> None:
        receiver_slot = inner.method_of is not None and "staticmethod" not in decorators
        for index, param in enumerate(parameters.named_children):
            name_node, annotation, default = _split_parameter(param)
            if annotation is not None:
                self._visit(annotation, outer)
            if default is not None:
                self._visit(default, outer)
            if name_node is None:
                continue
            definition = self._bind(inner, name_node, "var")
            if definition is None:
                continue
            if receiver_slot and index == 0 and inner.method_of is not None:
                via: Literal["instance", "class"] = (
                    "class" if "classmethod" in decorators else "instance"
                )
                self.hints[definition] = TypeHint(via=via, class_info=inner.method_of)
            elif annotation is not None:
                self._hint_from_annotation(definition, annotation, outer)

    def _lambda(self, node: Node, scope: ScopeInfo) -> None:
        inner = self._new_scope(node, "function", "<lambda>", scope)
        parameters = node.child_by_field_name("parameters")
        if parameters is not None:
            for param in parameters.named_children:
                name_node, _, default = _split_parameter(param)
                if default is not None:
                    self._visit(default, scope)
                if name_node is not None:
                    self._bind(inner, name_node, "var")
        body = node.child_by_field_name("body")
        if body is not None:
            self._visit(body, inner)

    def _comprehension(self, node: Node, scope: ScopeInfo) -> None:
        inner = self._new_scope(node, "comprehension", f"<{node.type}>", scope)
        self._visit_children(node, inner)

    def _class(self, node: Node, scope: ScopeInfo) -> None:
        name_node = node.child_by_field_name("name")
        class_name = node_text(name_node) or "<class>"
        definition = None
        if name_node is not None:
            definition = self._bind(scope, name_node, "type", is_field=False)

        superclasses = node.child_by_field_name("superclasses")
        if superclasses is not None:
            self._visit_children(superclasses, scope)

        inner = self._new_scope(node, "class", class_name, scope)
        if definition is not None:
            info = ClassInfo(definition=definition, scope=inner)
            if superclasses is not None:
                info.bases = [
                    base
                    for base in superclasses.named_children
                    if base.type in {"identifier", "attribute"}
                ]
            inner.class_info = info
            self.classes[definition] = info

        body = node.child_by_field_name("body")
        if body is not None:
            self._visit_children(body, inner)

    def _assignment(self, node: Node, scope: ScopeInfo) -> None:
        left = node.child_by_field_name("left")
        annotation = node.child_by_field_name("type")
        right = node.child_by_field_name("right")

        if left is not None and left.type == "identifier":
            kind = self._definition_kind(scope, node_text(left), annotation)
            definition = self._bind(scope, left, kind)
            if definition is not None:
                if annotation is not None:
                    self._hint_from_annotation(definition, annotation, scope)
                elif right is not None:
                    self._hint_from_value(definition, right, scope)
        elif left is not None and left.type == "attribute":
            self._instance_field(left, scope)
        else:
            self._bind_targets(scope, left)
            if left is not None:
                for target in _attribute_targets(left):
                    self._instance_field(target, scope)

        self._visit_children(node, scope)

    def _instance_field(self, attribute: Node, scope: ScopeInfo) -> None:
        # self.x = ... inside a method declares a field on the class
        if scope.method_of is None:
            return
        obj = attribute.child_by_field_name("object")
        attr = attribute.child_by_field_name("attribute")
        if obj is None or attr is None or obj.type != "identifier":
            return
        receiver = scope.bindings.get(node_text(obj))
        hint = self.hints.get(receiver) if receiver is not None else None
        if hint is None or hint.via != "instance" or hint.class_info is None:
            return
        info = hint.class_info
        name = node_text(attr)
        if name in info.scope.bindings or name in info.instance_fields:
            return
        definition = Definition(
            name=name,
            kind="var",
            pos=node_position(self.path, attr),
            scope=info.scope.scope,
            is_field=True,
        )
        info.instance_fields[name] = definition

    def _except_alias(self, node: Node, scope: ScopeInfo) -> None:
        children = node.children
        for index, child in enumerate(children[:-1]):
            if child.type == "as" and children[index + 1].type == "identifier":
                self._bind(scope, children[index + 1], "var")

    def _import(self, node: Node, scope: ScopeInfo) -> None:
        for name in node.children_by_field_name("name"):
            if name.type == "aliased_import":
                alias = name.child_by_field_name("alias")
                if alias is not None:
                    self._bind(scope, alias, "import", is_field=False)
            elif name.type == "dotted_name":
                parts = [c for c in name.named_children if c.type == "identifier"]
                if not parts:
                    continue
                # import a.b binds a; from m import b binds b
                bound = parts[0] if node.type == "import_statement" else parts[-1]
                self._bind(scope, bound, "import", is_field=False)

    def _hint_from_annotation(
        self, definition: Definition, annotation: Node, scope: ScopeInfo
    ) -> None:
        expr = annotation
        if expr.type == "type" and expr.named_child_count == 1:
            expr = expr.named_children[0]
        if expr.type == "identifier":
            self.hints[definition] = TypeHint(via="instance", ref=expr, scope=scope)

    def _hint_from_value(
        self, definition: Definition, value: Node, scope: ScopeInfo
    ) -> None:
        if value.type != "call":
            return
        func = value.child_by_field_name("function")
        if func is not None and func.type == "identifier":
            self.hints[definition] = TypeHint(via="instance", ref=func, scope=scope)


def _decorator_names(function: Node) -> set[str]:
    parent = function.parent
    if parent is None or parent.type != "decorated_definition":
        return set()
    names: set[str] = set()
    for decorator in parent.named_children:
        if decorator.type != "decorator":
            continue
        for expr in decorator.named_children:
            names.add(node_text(expr).rsplit(".", 1)[-1])
    return names


def _split_parameter(param: Node) -> tuple[Node | None, Node | None, Node | None]:
    """Return (name identifier, annotation, default) for a parameter node."""
    param_type = param.type
    if param_type == "identifier":
        return param, None, None
    if param_type in {"list_splat_pattern", "dictionary_splat_pattern"}:
        return _first_identifier(param), None, None
    if param_type == "typed_parameter":
        name = next(
            (
                _first_identifier(c) if c.type != "identifier" else c
                for c in param.named_children
                if c.type != "type"
            ),
            None,
        )
        return name, param.child_by_field_name("type"), None
    if param_type in {"default_parameter", "typed_default_parameter"}:
        name = param.child_by_field_name("name")
        if name is not None and name.type != "identifier":
            name = _first_identifier(name)
        return (
            name,
            param.child_by_field_name("type"),
            param.child_by_field_name("value"),
        )
    return None, None, None


def _first_identifier(node: Node) -> Node | None:
    if node.type == "identifier":
        return node
    for child in node.named_children:
        found = _first_identifier(child)
        if found is not None:
            return found
    return None


def _target_identifiers(target: Node | None) -> list[Node]:
    if target is None:
        return []
    if target.type == "identifier":
        return [target]
    if target.type in _TARGET_CONTAINERS:
        names: list[Node] = []
        for child in target.named_children:
            names.extend(_target_identifiers(child))
        return names
    return []


def _attribute_targets(target: Node) -> list[Node]:
    if target.type == "attribute":
        return [target]
    if target.type in _TARGET_CONTAINERS:
        found: list[Node] = []
        for child in target.named_children:
            found.extend(_attribute_targets(child))
        return found
    return []


__all__ = [
    "ClassInfo",
    "CollectedScopes",
    "NodeKey",
    "ScopeCollector",
    "ScopeInfo",
    "TypeHint",
    "is_constant_name",
    "node_key",
    "node_position",
    "node_text",
]
