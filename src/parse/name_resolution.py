"""Name resolution and syntax-tree construction for Python modules.

Second pass of the Python front end. Walks the tree-sitter tree again using
the scopes collected by :mod:`parse.scopes`, builds the :class:`SyntaxNode`
tree the ordering checks consume, and records what each identifier and
attribute access resolves to.
"""

from __future__ import annotations

import builtins
from typing import TYPE_CHECKING

from parse.scopes import (
    ClassInfo,
    CollectedScopes,
    ScopeInfo,
    node_key,
    node_position,
    node_text,
)
from parse.syntax import Definition, Scope, Selection, SyntaxNode

if TYPE_CHECKING:
    from tree_sitter import Node

    from parse.syntax import Position

BUILTIN_SCOPE = Scope("builtin", "builtins")

_BUILTINS: dict[str, Definition] | None = None

# Names that never refer to a declaration in the enclosing module.
_SKIPPED_NODES = frozenset(
    {
        "comment",
        "global_statement",
        "nonlocal_statement",
        "future_import_statement",
        "wildcard_import",
    }
)


def builtin_definitions() -> dict[str, Definition]:
    """Definitions for the builtins module; none has a known position."""
    global _BUILTINS
    if _BUILTINS is None:
        table: dict[str, Definition] = {}
        for name in dir(builtins):
            obj = getattr(builtins, name)
            if isinstance(obj, type):
                table[name] = Definition(name, "type", None, BUILTIN_SCOPE)
            elif callable(obj):
                table[name] = Definition(name, "func", None)
            else:
                table[name] = Definition(name, "const", None, BUILTIN_SCOPE)
        _BUILTINS = table
    return _BUILTINS


def _inside_function(scope: Scope | None) -> bool:
    while scope is not None:
        if scope.kind in {"function", "comprehension"}:
            return True
        scope = scope.parent
    return False


class Resolver:
    """Build the checked syntax tree for one module."""

    def __init__(self, path: str, collected: CollectedScopes) -> None:
        self.path = path
        self.collected = collected
        self.uses: dict[SyntaxNode, Definition] = {}
        self.selections: dict[SyntaxNode, Selection] = {}

    def build(self, root: Node) -> SyntaxNode:
        module = self.collected.module
        children = self._convert_children(root, module)
        return SyntaxNode("file", module.scope.pos or self._pos(root), children=children)

    # -- lookup ----------------------------------------------------------

    def lookup(self, name: str, scope: ScopeInfo) -> Definition | None:
        """Resolve ``name`` with Python's LEGB rules.

        Class scopes are only visible to code directly in the class body.
        """
        current: ScopeInfo | None = scope
        innermost = True
        while current is not None:
            if current.kind == "class" and not innermost:
                current = current.parent
                continue
            if name in current.globals_:
                module = current.module()
                return module.bindings.get(name) or builtin_definitions().get(name)
            if name in current.nonlocals:
                current = current.parent
                innermost = False
                continue
            found = current.bindings.get(name)
            if found is not None:
                return found
            current = current.parent
            innermost = False
        return builtin_definitions().get(name)

    def find_member(self, info: ClassInfo, name: str) -> Definition | None:
        seen: set[int] = set()
        pending = [info]
        while pending:
            current = pending.pop(0)
            if id(current) in seen:
                continue
            seen.add(id(current))
            member = current.scope.bindings.get(name)
            if member is None:
                member = current.instance_fields.get(name)
            if member is not None:
                return member
            for base in current.bases:
                base_info = self._class_for(base, current.scope.parent)
                if base_info is not None:
                    pending.append(base_info)
        return None

    def _class_for(self, ref: Node, scope: ScopeInfo | None) -> ClassInfo | None:
        if scope is None or ref.type != "identifier":
            return None
        definition = self.lookup(node_text(ref), scope)
        if definition is None or definition.kind != "type":
            return None
        return self.collected.classes.get(definition)

    def receiver_class(
        self, obj: Node, scope: ScopeInfo
    ) -> tuple[ClassInfo, str] | None:
        """Return the class an attribute access goes through, and how."""
        if obj.type == "identifier":
            definition = self.lookup(node_text(obj), scope)
            if definition is None:
                return None
            if definition.kind == "type":
                info = self.collected.classes.get(definition)
                return (info, "class") if info is not None else None
            hint = self.collected.hints.get(definition)
            if hint is None:
                return None
            if hint.class_info is not None:
                return hint.class_info, hint.via
            if hint.ref is not None:
                info = self._class_for(hint.ref, hint.scope)
                return (info, hint.via) if info is not None else None
            return None
        if obj.type == "call":
            func = obj.child_by_field_name("function")
            if func is not None:
                info = self._class_for(func, scope)
                return (info, "instance") if info is not None else None
        return None

    def select(self, obj: Node, attr: str, scope: ScopeInfo) -> Selection | None:
        receiver = self.receiver_class(obj, scope)
        if receiver is None:
            return None
        info, via = receiver
        member = self.find_member(info, attr)
        if member is None:
            return None
        if member.is_field:
            return Selection("field", member)
        if member.kind == "func":
            return Selection("method_val" if via == "instance" else "method_expr", member)
        return None

    # -- conversion --------------------------------------------------------

    def _pos(self, node: Node) -> Position:
        return node_position(self.path, node)

    def _scope_for(self, node: Node, default: ScopeInfo) -> ScopeInfo:
        return self.collected.by_node.get(node_key(node), default)

    def _other(self, node: Node, children: list[SyntaxNode], name: str = "") -> SyntaxNode:
        return SyntaxNode("other", self._pos(node), name=name, children=children)

    def _convert_children(self, node: Node, scope: ScopeInfo) -> list[SyntaxNode]:
        converted: list[SyntaxNode] = []
        for child in node.named_children:
            result = self._convert(child, scope)
            if result is not None:
                converted.append(result)
        return converted

    def _convert(self, node: Node, scope: ScopeInfo) -> SyntaxNode | None:  # noqa: C901
        node_type = node.type
        if node_type in _SKIPPED_NODES:
            return None
        if node_type == "identifier":
            return self._identifier(node, scope)
        if node_type == "attribute":
            return self._attribute(node, scope)
        if node_type == "function_definition":
            return self._function(node, scope)
        if node_type == "class_definition":
            return self._class(node, scope)
        if node_type == "lambda":
            return self._lambda(node, scope)
        if node_type in {"import_statement", "import_from_statement"}:
            return self._import(node)
        if node_type == "keyword_argument":
            value = node.child_by_field_name("value")
            converted = self._convert(value, scope) if value is not None else None
            return self._other(node, [converted] if converted is not None else [])
        if node_type == "dotted_name":
            parts = node.named_children
            first = self._convert(parts[0], scope) if parts else None
            return self._other(node, [first] if first is not None else [])
        inner = self._scope_for(node, scope)
        return self._other(node, self._convert_children(node, inner))

    def _identifier(self, node: Node, scope: ScopeInfo) -> SyntaxNode:
        name = node_text(node)
        ident = SyntaxNode("ident", self._pos(node), name=name)
        if node_key(node) in self.collected.def_sites:
            return ident
        definition = self.lookup(name, scope)
        if definition is not None:
            self.uses[ident] = definition
        return ident

    def _declared(self, node: Node) -> SyntaxNode:
        return SyntaxNode("ident", self._pos(node), name=node_text(node))

    def _attribute(self, node: Node, scope: ScopeInfo) -> SyntaxNode:
        obj = node.child_by_field_name("object")
        attr = node.child_by_field_name("attribute")
        attr_name = node_text(attr)
        children: list[SyntaxNode] = []
        if obj is not None:
            converted = self._convert(obj, scope)
            if converted is not None:
                children.append(converted)
        selector = SyntaxNode("selector", self._pos(node), name=attr_name, children=children)
        if attr is None:
            return selector
        sel_ident = SyntaxNode("ident", self._pos(attr), name=attr_name)
        children.append(sel_ident)
        selection = self.select(obj, attr_name, scope) if obj is not None else None
        if selection is not None:
            self.selections[selector] = selection
            self.uses[sel_ident] = selection.obj
        return selector

    def _function(self, node: Node, scope: ScopeInfo) -> SyntaxNode:
        inner = self._scope_for(node, scope)
        name_node = node.child_by_field_name("name")
        name = node_text(name_node)
        children: list[SyntaxNode] = []

        # The enclosing class plays the part of the method's receiver clause.
        # Classes declared inside a function are not top-level declarations.
        owner = inner.method_of
        if owner is not None and not _inside_function(owner.definition.scope):
            receiver = SyntaxNode("ident", self._pos(node), name=owner.definition.name)
            self.uses[receiver] = owner.definition
            children.append(receiver)
        if name_node is not None:
            children.append(self._declared(name_node))

        signature_parts: list[SyntaxNode] = []
        for field_name in ("type_parameters", "parameters", "return_type"):
            part = node.child_by_field_name(field_name)
            if part is not None:
                converted = self._convert(part, scope)
                if converted is not None:
                    signature_parts.append(converted)
        parameters = node.child_by_field_name("parameters")
        signature_pos = self._pos(parameters) if parameters is not None else self._pos(node)
        children.append(SyntaxNode("signature", signature_pos, children=signature_parts))

        body = node.child_by_field_name("body")
        if body is not None:
            children.append(self._other(body, self._convert_children(body, inner)))
        return SyntaxNode("func_decl", self._pos(node), name=name, children=children)

    def _class(self, node: Node, scope: ScopeInfo) -> SyntaxNode:
        inner = self._scope_for(node, scope)
        name_node = node.child_by_field_name("name")
        children: list[SyntaxNode] = []
        if name_node is not None:
            children.append(self._declared(name_node))
        superclasses = node.child_by_field_name("superclasses")
        if superclasses is not None:
            children.append(self._other(superclasses, self._convert_children(superclasses, scope)))
        body = node.child_by_field_name("body")
        if body is not None:
            children.append(self._other(body, self._convert_children(body, inner)))
        return self._other(node, children, name=node_text(name_node))

    def _lambda(self, node: Node, scope: ScopeInfo) -> SyntaxNode:
        inner = self._scope_for(node, scope)
        children: list[SyntaxNode] = []
        parameters = node.child_by_field_name("parameters")
        if parameters is not None:
            children.append(self._other(parameters, self._convert_children(parameters, scope)))
        body = node.child_by_field_name("body")
        if body is not None:
            converted = self._convert(body, inner)
            if converted is not None:
                children.append(converted)
        return self._other(node, children)

    def _import(self, node: Node) -> SyntaxNode:
        # Only the names an import binds appear in the tree; module paths do not.
        bound: list[SyntaxNode] = []
        pending = list(node.named_children)
        while pending:
            child = pending.pop(0)
            if child.type == "identifier":
                if node_key(child) in self.collected.def_sites:
                    bound.append(self._declared(child))
                continue
            pending[:0] = child.named_children
        return self._other(node, bound)


__all__ = ["BUILTIN_SCOPE", "Resolver", "builtin_definitions"]
