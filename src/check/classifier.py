"""Reference classification.

Turns a walk over a :class:`~parse.syntax.ResolvedFile` into reference
events of one of the five :class:`~rules.policy.RefKind` kinds. References
that are never checked (fields, locals, qualified names, anything the front
end could not resolve) produce an info diagnostic instead of an event.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rules.policy import RefKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from parse.syntax import Definition, ResolvedFile, Scope, SyntaxNode
    from report.sinks import DiagnosticSink

    ReferenceHandler = Callable[[SyntaxNode, Definition, RefKind], object]


@dataclass
class ReceiverContext:
    """The open top-level function or method declaration.

    Declarations that open a context cannot nest, so a single slot is enough.
    ``in_receiver`` is true until the declaration's signature is reached;
    any type named before that is the receiver type.
    """

    decl: SyntaxNode | None = None
    in_receiver: bool = False
    recv_type: Definition | None = None

    def open(self, decl: SyntaxNode) -> None:
        if self.decl is None:
            self.decl = decl
            self.in_receiver = True

    def close(self, node: SyntaxNode) -> None:
        if self.decl is node:
            self.decl = None
            self.in_receiver = False
            self.recv_type = None


def _scope_label(scope: Scope | None) -> str:
    if scope is None:
        return "<none>"
    if scope.pos is None:
        return f"<{scope.name}>"
    return str(scope.pos)


class ReferenceClassifier:
    def __init__(
        self,
        resolved: ResolvedFile,
        sink: DiagnosticSink,
        on_reference: ReferenceHandler,
    ) -> None:
        self.resolved = resolved
        self.sink = sink
        self.on_reference = on_reference
        self.context = ReceiverContext()

    def visit(self, node: SyntaxNode, push: bool) -> bool:
        if not push:
            self.context.close(node)
            return True

        if node.kind == "file":
            if self.resolved.generated:
                self.sink.info(node.pos, "skipping generated file")
                return False
        elif node.kind == "func_decl":
            self.context.open(node)
        elif node.kind == "signature":
            self.context.in_receiver = False
        elif node.kind == "selector":
            self._selector(node)
        elif node.kind == "ident":
            self._ident(node)
        return True

    def _is_top_level(self, scope: Scope | None) -> bool:
        return scope is self.resolved.module_scope

    def _selector(self, node: SyntaxNode) -> None:
        selection = self.resolved.selections.get(node)
        if selection is None:
            # Qualified names (module attributes) and receivers the front end
            # cannot type have no selection.
            self.sink.info(node.pos, f"skipping selector {node.name} with missing selection")
            return

        if selection.kind in {"method_val", "method_expr"}:
            self.on_reference(self._member_ident(node), selection.obj, RefKind.FUNC)
        elif selection.kind == "field":
            return
        else:
            self.sink.info(node.pos, f"unknown selection kind {selection.kind}")

    def _member_ident(self, node: SyntaxNode) -> SyntaxNode:
        for child in reversed(node.children):
            if child.kind == "ident" and child.name == node.name:
                return child
        return node

    def _ident(self, node: SyntaxNode) -> None:  # noqa: C901
        definition = self.resolved.uses.get(node)
        kind = definition.kind if definition is not None else None

        if definition is not None and kind == "var":
            if definition.is_field:
                self.sink.info(
                    node.pos, f"skipping var ident {node.name} for field {definition.pos}"
                )
            elif not self._is_top_level(definition.scope):
                self.sink.info(
                    node.pos,
                    f"skipping var ident {node.name} with inner parent scope "
                    f"{_scope_label(definition.scope)}",
                )
            else:
                self.on_reference(node, definition, RefKind.VAR)
        elif definition is not None and kind == "const":
            if not self._is_top_level(definition.scope):
                self.sink.info(
                    node.pos,
                    f"skipping const ident {node.name} with inner parent scope "
                    f"{_scope_label(definition.scope)}",
                )
            else:
                self.on_reference(node, definition, RefKind.CONST)
        elif definition is not None and kind == "func":
            if definition.scope is not None and not self._is_top_level(definition.scope):
                self.sink.info(
                    node.pos,
                    f"skipping func ident {node.name} with inner parent scope "
                    f"{_scope_label(definition.scope)}",
                )
            else:
                self.on_reference(node, definition, RefKind.FUNC)
        elif definition is not None and kind == "type":
            self._type_ident(node, definition)
        else:
            self.sink.info(node.pos, f"unexpected ident def type {kind} for {node.name!r}")

    def _type_ident(self, node: SyntaxNode, definition: Definition) -> None:
        context = self.context
        if context.decl is not None and context.in_receiver:
            context.recv_type = definition
            self.sink.info(node.pos, f"skipping ident {node.name} in recv list")
            return
        if context.decl is not None and context.recv_type is definition:
            self.on_reference(node, definition, RefKind.RECV_TYPE)
            return
        self.on_reference(node, definition, RefKind.TYPE)


__all__ = ["ReceiverContext", "ReferenceClassifier"]
