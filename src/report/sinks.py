"""Diagnostic sinks.

A sink receives error, info and ok reports at source positions. The base
:class:`SimpleSink` emits immediately; the decorators filter, colour or
buffer reports before handing them to the sink they wrap. The standard stack
(outermost first) is sorted, verbose, color, simple; see
:func:`build_sink_stack`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from termcolor import colored

from report.diagnostics import Diagnostic, Severity

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import TextIO

    from parse.syntax import Position


class DiagnosticSink(ABC):
    @abstractmethod
    def error(self, pos: Position, message: str) -> None: ...

    @abstractmethod
    def info(self, pos: Position, message: str) -> None: ...

    @abstractmethod
    def ok(self, pos: Position, message: str) -> None: ...

    @abstractmethod
    def flush(self) -> None: ...

    def report(self, severity: Severity, pos: Position, message: str) -> None:
        if severity is Severity.ERROR:
            self.error(pos, message)
        elif severity is Severity.INFO:
            self.info(pos, message)
        else:
            self.ok(pos, message)


class SimpleSink(DiagnosticSink):
    """Emit every report as soon as it arrives.

    Errors go through ``report``, the host's reporting hook, so they count
    against the analyzed file. Info and ok lines are written to ``stream``.
    Every emitted diagnostic is also kept, in emission order.
    """

    def __init__(
        self,
        report: Callable[[Diagnostic], None],
        stream: TextIO | None = None,
    ) -> None:
        self._report = report
        self._stream = stream
        self.emitted: list[Diagnostic] = []

    def error(self, pos: Position, message: str) -> None:
        diagnostic = Diagnostic(pos, Severity.ERROR, message)
        self.emitted.append(diagnostic)
        self._report(diagnostic)

    def info(self, pos: Position, message: str) -> None:
        self._write(Diagnostic(pos, Severity.INFO, message))

    def ok(self, pos: Position, message: str) -> None:
        self._write(Diagnostic(pos, Severity.OK, message))

    def flush(self) -> None:
        if self._stream is not None:
            self._stream.flush()

    def _write(self, diagnostic: Diagnostic) -> None:
        self.emitted.append(diagnostic)
        if self._stream is not None:
            self._stream.write(f"{diagnostic.format()}\n")


class WrappingSink(DiagnosticSink):
    """Pass every call through to ``inner``."""

    def __init__(self, inner: DiagnosticSink) -> None:
        self.inner = inner

    def error(self, pos: Position, message: str) -> None:
        self.inner.error(pos, message)

    def info(self, pos: Position, message: str) -> None:
        self.inner.info(pos, message)

    def ok(self, pos: Position, message: str) -> None:
        self.inner.ok(pos, message)

    def flush(self) -> None:
        self.inner.flush()


class ColorSink(WrappingSink):
    def __init__(
        self,
        inner: DiagnosticSink,
        *,
        enabled: bool = True,
        color_error: str = "red",
        color_info: str = "dark_grey",
        color_ok: str = "green",
    ) -> None:
        super().__init__(inner)
        self.enabled = enabled
        self.color_error = color_error
        self.color_info = color_info
        self.color_ok = color_ok

    def _paint(self, message: str, color: str) -> str:
        if not self.enabled:
            return message
        return colored(message, color, force_color=True)

    def error(self, pos: Position, message: str) -> None:
        self.inner.error(pos, self._paint(message, self.color_error))

    def info(self, pos: Position, message: str) -> None:
        self.inner.info(pos, self._paint(message, self.color_info))

    def ok(self, pos: Position, message: str) -> None:
        self.inner.ok(pos, self._paint(message, self.color_ok))


class VerboseSink(WrappingSink):
    """Drop info and ok reports unless verbose; errors always pass."""

    def __init__(self, inner: DiagnosticSink, *, verbose: bool) -> None:
        super().__init__(inner)
        self.verbose = verbose

    def info(self, pos: Position, message: str) -> None:
        if self.verbose:
            self.inner.info(pos, message)

    def ok(self, pos: Position, message: str) -> None:
        if self.verbose:
            self.inner.ok(pos, message)


@dataclass(frozen=True)
class _Buffered:
    pos: Position
    severity: Severity
    message: str


class SortedSink(WrappingSink):
    """Buffer reports and replay them in source order on flush.

    Traversal does not visit nodes in position order, so nothing reaches the
    wrapped sink until :meth:`flush`, which sorts by (path, line, column),
    keeps arrival order for equal positions, and empties the buffer.
    """

    def __init__(self, inner: DiagnosticSink) -> None:
        super().__init__(inner)
        self._buffer: list[_Buffered] = []

    def __len__(self) -> int:
        return len(self._buffer)

    def error(self, pos: Position, message: str) -> None:
        self._buffer.append(_Buffered(pos, Severity.ERROR, message))

    def info(self, pos: Position, message: str) -> None:
        self._buffer.append(_Buffered(pos, Severity.INFO, message))

    def ok(self, pos: Position, message: str) -> None:
        self._buffer.append(_Buffered(pos, Severity.OK, message))

    def flush(self) -> None:
        entries = sorted(self._buffer, key=lambda entry: entry.pos)
        self._buffer = []
        for entry in entries:
            self.inner.report(entry.severity, entry.pos, entry.message)
        self.inner.flush()


def build_sink_stack(
    base: DiagnosticSink, *, verbose: bool, color: bool
) -> SortedSink:
    """Wrap ``base`` as sorted -> verbose -> color -> base."""
    sink: DiagnosticSink = ColorSink(base, enabled=color)
    sink = VerboseSink(sink, verbose=verbose)
    return SortedSink(sink)


__all__ = [
    "ColorSink",
    "DiagnosticSink",
    "SimpleSink",
    "SortedSink",
    "VerboseSink",
    "WrappingSink",
    "build_sink_stack",
]
