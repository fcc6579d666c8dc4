"""Run the reference-order checks over one resolved file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from check.classifier import ReferenceClassifier
from check.order import OrderChecker
from parse.syntax import walk
from report.diagnostics import Diagnostic, Severity
from report.sinks import SimpleSink, build_sink_stack
from rules.policy import OrderPolicy

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import TextIO

    from parse.syntax import ResolvedFile

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of checking one file.

    ``diagnostics`` holds everything that survived filtering, in source
    order; the file fails when any of them is an error.
    """

    path: str
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def lines(self) -> list[str]:
        return [d.format() for d in self.diagnostics]


def run(
    resolved: ResolvedFile,
    policy: OrderPolicy | None = None,
    *,
    verbose: bool = False,
    color: bool = False,
    stream: TextIO | None = None,
    report: Callable[[Diagnostic], None] | None = None,
) -> RunResult:
    """Check every reference in ``resolved`` against ``policy``.

    Args:
        resolved: Parsed and resolved file
        policy: Direction per reference kind (default policy when omitted)
        verbose: Keep info and ok diagnostics and add definition positions
        color: Colorize messages
        stream: Where info and ok lines are written as they are flushed
        report: Host hook called for each error diagnostic

    Returns:
        The flushed diagnostics for the file.
    """
    policy = policy or OrderPolicy()

    def _report(diagnostic: Diagnostic) -> None:
        if report is not None:
            report(diagnostic)

    base = SimpleSink(_report, stream)
    sink = build_sink_stack(base, verbose=verbose, color=color)
    checker = OrderChecker(policy, sink, verbose=verbose)
    classifier = ReferenceClassifier(resolved, sink, checker.check)

    logger.debug("checking %s", resolved.path)
    walk(resolved.root, classifier.visit)
    logger.debug("%s: %d reports buffered", resolved.path, len(sink))
    sink.flush()

    result = RunResult(path=resolved.path, diagnostics=list(base.emitted))
    logger.debug(
        "%s: %d diagnostics, %d errors",
        resolved.path,
        len(result.diagnostics),
        len(result.errors),
    )
    return result


__all__ = ["RunResult", "run"]
