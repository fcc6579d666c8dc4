"""Front-end interface consumed by the ordering checks.

A front end turns one source file into a :class:`ResolvedFile`: a tree of
:class:`SyntaxNode` objects plus side tables that map identifier nodes to the
:class:`Definition` they use and selector nodes to their :class:`Selection`.
The checks never parse or resolve anything themselves.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Literal

NodeKind = Literal["file", "func_decl", "signature", "selector", "ident", "other"]

# Declaration kinds the checks understand. Front ends may report other kinds
# (e.g. "import", "builtin"); those are treated as unexpected.
DefKind = Literal["var", "const", "func", "type", "import", "builtin"]

SelectionKind = Literal["field", "method_val", "method_expr"]

ScopeKind = Literal["builtin", "module", "class", "function", "comprehension"]


@dataclass(frozen=True, order=True)
class Position:
    """A 1-based source position."""

    path: str
    line: int
    col: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.col}"


@dataclass(eq=False)
class Scope:
    kind: ScopeKind
    name: str
    pos: Position | None = None
    parent: Scope | None = None

    def __repr__(self) -> str:
        return f"Scope({self.kind}, {self.name!r})"


@dataclass(eq=False)
class Definition:
    """A resolved declaration.

    ``pos`` is ``None`` when the declaration could not be located (an invalid
    declaration site). Identity is object identity, so two definitions are
    the same symbol only if they are the same object.
    """

    name: str
    kind: DefKind | str
    pos: Position | None
    scope: Scope | None = None
    is_field: bool = False

    def __repr__(self) -> str:
        return f"Definition({self.kind} {self.name!r} @ {self.pos})"


@dataclass(frozen=True)
class Selection:
    kind: SelectionKind | str
    obj: Definition


@dataclass(eq=False)
class SyntaxNode:
    kind: NodeKind
    pos: Position
    name: str = ""
    children: list[SyntaxNode] = field(default_factory=list)

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"SyntaxNode({self.kind}{label} @ {self.pos})"

    def iter_tree(self) -> Iterator[SyntaxNode]:
        pending = [self]
        while pending:
            node = pending.pop()
            yield node
            pending.extend(reversed(node.children))


@dataclass
class ResolvedFile:
    """One parsed and resolved source file."""

    path: str
    root: SyntaxNode
    module_scope: Scope
    uses: dict[SyntaxNode, Definition] = field(default_factory=dict)
    selections: dict[SyntaxNode, Selection] = field(default_factory=dict)
    generated: bool = False


Visitor = Callable[[SyntaxNode, bool], bool]


def walk(node: SyntaxNode, visit: Visitor) -> None:
    """Visit ``node`` and its subtree in pre-order with a post-order hook.

    ``visit(node, True)`` is called before the children. If it returns
    ``True`` the children are walked and ``visit(node, False)`` follows;
    otherwise both the children and the post-order call are skipped.
    """
    pending: list[tuple[SyntaxNode, bool]] = [(node, True)]
    while pending:
        current, push = pending.pop()
        if not push:
            visit(current, False)
            continue
        if not visit(current, True):
            continue
        pending.append((current, False))
        pending.extend((child, True) for child in reversed(current.children))


__all__ = [
    "DefKind",
    "Definition",
    "NodeKind",
    "Position",
    "ResolvedFile",
    "Scope",
    "ScopeKind",
    "Selection",
    "SelectionKind",
    "SyntaxNode",
    "Visitor",
    "walk",
]
