"""Reference-to-declaration order judgement."""

from __future__ import annotations

from typing import TYPE_CHECKING

from report.diagnostics import Severity
from rules.policy import Direction

if TYPE_CHECKING:
    from parse.syntax import Definition, SyntaxNode
    from report.sinks import DiagnosticSink
    from rules.policy import OrderPolicy, RefKind


class OrderChecker:
    """Compare a reference's position with its declaration's under a policy."""

    def __init__(
        self, policy: OrderPolicy, sink: DiagnosticSink, *, verbose: bool = False
    ) -> None:
        self.policy = policy
        self.sink = sink
        self.verbose = verbose

    def check(self, ref: SyntaxNode, definition: Definition, kind: RefKind) -> Severity:
        """Report on one reference and return the severity reported."""
        name = ref.name
        def_pos = definition.pos
        if def_pos is None:
            self.sink.info(ref.pos, f"got invalid definition position for {name!r}")
            return Severity.INFO

        direction = self.policy.direction(kind)
        if direction is Direction.IGNORE:
            self.sink.info(ref.pos, f"{kind} reference {name} ignored by options")
            return Severity.INFO

        if ref.pos.path != def_pos.path:
            self.sink.info(
                ref.pos,
                f"{kind} reference {name} is to definition in separate file ({def_pos})",
            )
            return Severity.INFO

        if ref.pos.line == def_pos.line:
            self.sink.ok(
                ref.pos,
                f"{kind} reference {name} is on same line as definition ({def_pos})",
            )
            return Severity.OK

        ref_before_def = ref.pos.line < def_pos.line
        order = "before" if ref_before_def else "after"
        message = f"{kind} reference {name} is {order} definition"
        if self.verbose:
            message = f"{message} ({def_pos})"

        if ref_before_def == (direction is Direction.DOWN):
            self.sink.ok(ref.pos, message)
            return Severity.OK
        self.sink.error(ref.pos, message)
        return Severity.ERROR


__all__ = ["OrderChecker"]
