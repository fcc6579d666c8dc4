"""Diagnostic reporting for refdir."""

from report.diagnostics import Diagnostic, DiagnosticRecord, Severity
from report.sinks import (
    ColorSink,
    DiagnosticSink,
    SimpleSink,
    SortedSink,
    VerboseSink,
    build_sink_stack,
)

__all__ = [
    "ColorSink",
    "Diagnostic",
    "DiagnosticRecord",
    "DiagnosticSink",
    "Severity",
    "SimpleSink",
    "SortedSink",
    "VerboseSink",
    "build_sink_stack",
]
