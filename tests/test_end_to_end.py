from __future__ import annotations

import io
import logging

import pytest

from check.driver import run
from parse.syntax import Definition, Position, ResolvedFile, Scope, SyntaxNode, walk
from parse.treesitter_tree import parse_source
from report.diagnostics import Diagnostic, Severity
from rules.policy import OrderPolicy

SCENARIO_A = "def helper():\n    pass\n\n\ndef main():\n    helper()\n"
SCENARIO_B = "class T:\n    def copy(self):\n        return T()\n"
SCENARIO_C = "a = b\nb = 1\n"


def test_scenario_a_call_below_definition_fails() -> None:
    result = run(parse_source(SCENARIO_A, "a.py"))

    assert not result.ok
    assert result.lines == ["a.py:6:5: func reference helper is after definition"]


def test_scenario_b_receiver_type_above_method_passes() -> None:
    result = run(parse_source(SCENARIO_B, "b.py"), verbose=True)

    assert result.ok
    assert "b.py:3:16: recvtype reference T is after definition (b.py:1:7)" in result.lines


def test_scenario_c_var_reference_above_declaration_passes() -> None:
    result = run(parse_source(SCENARIO_C, "c.py"), verbose=True)

    assert result.ok
    assert "c.py:1:5: var reference b is before definition (c.py:2:1)" in result.lines


def test_scenario_d_var_up_fails() -> None:
    policy = OrderPolicy.from_settings({"var": "up"})

    result = run(parse_source(SCENARIO_C, "c.py"), policy)

    assert result.lines == ["c.py:1:5: var reference b is before definition"]


def test_policy_built_from_plain_strings_judges_like_members() -> None:
    policy = OrderPolicy(
        {"func": "down", "type": "down", "recvtype": "up", "var": "down", "const": "down"}
    )

    result = run(parse_source(SCENARIO_A, "a.py"), policy)

    assert not result.ok
    assert result.lines == ["a.py:6:5: func reference helper is after definition"]


def test_ignored_kind_never_passes_or_fails() -> None:
    policy = OrderPolicy.from_settings({"func": "ignore"})

    result = run(parse_source(SCENARIO_A, "a.py"), policy, verbose=True)

    assert result.ok
    func_lines = [line for line in result.lines if "func reference" in line]
    assert func_lines == ["a.py:6:5: func reference helper ignored by options"]


def test_quiet_output_is_subset_of_verbose_errors() -> None:
    source = SCENARIO_A + SCENARIO_B.replace("T", "Later") + "\n\nx = Later\n"
    resolved = parse_source(source, "mod.py")

    quiet = run(resolved)
    verbose = run(resolved, verbose=True)

    assert all(d.severity is Severity.ERROR for d in quiet.diagnostics)
    assert [(d.pos, d.severity) for d in quiet.diagnostics] == [
        (d.pos, d.severity) for d in verbose.errors
    ]
    for short, full in zip(quiet.diagnostics, verbose.errors, strict=True):
        assert full.message.startswith(short.message)
    assert len(verbose.diagnostics) > len(quiet.diagnostics)


def _hand_built(reverse: bool) -> ResolvedFile:
    module = Scope("module", "mod", Position("mod.py", 1, 1))
    helper = Definition("helper", "func", Position("mod.py", 5, 5), module)
    limit = Definition("LIMIT", "const", Position("mod.py", 1, 1), module)
    uses: dict[SyntaxNode, Definition] = {}
    children: list[SyntaxNode] = []
    for line, definition in [(2, helper), (3, limit), (8, helper), (9, limit)]:
        ident = SyntaxNode("ident", Position("mod.py", line, 5), name=definition.name)
        uses[ident] = definition
        children.append(ident)
    if reverse:
        children.reverse()
    root = SyntaxNode("file", Position("mod.py", 1, 1), children=children)
    return ResolvedFile("mod.py", root, module, uses=uses)


def test_output_order_independent_of_traversal() -> None:
    forward = run(_hand_built(reverse=False), verbose=True)
    backward = run(_hand_built(reverse=True), verbose=True)

    assert forward.lines == backward.lines
    assert [d.pos.line for d in forward.diagnostics] == [2, 3, 8, 9]


def test_cross_file_definition_is_info_only() -> None:
    module = Scope("module", "mod", Position("mod.py", 1, 1))
    remote = Definition("helper", "func", Position("other.py", 1, 5), module)
    ident = SyntaxNode("ident", Position("mod.py", 3, 1), name="helper")
    root = SyntaxNode("file", Position("mod.py", 1, 1), children=[ident])
    resolved = ResolvedFile("mod.py", root, module, uses={ident: remote})

    result = run(resolved, verbose=True)

    assert result.ok
    assert [d.severity for d in result.diagnostics] == [Severity.INFO]


def test_run_writes_stream_and_reports_errors() -> None:
    stream = io.StringIO()
    reported: list[Diagnostic] = []

    result = run(
        parse_source(SCENARIO_A, "a.py"),
        verbose=True,
        stream=stream,
        report=reported.append,
    )

    assert [d.format() for d in reported] == [
        "a.py:6:5: func reference helper is after definition (a.py:1:5)"
    ]
    written = stream.getvalue().splitlines()
    assert "a.py:1:5: unexpected ident def type None for 'helper'" in written
    assert all("after definition" not in line for line in written)
    assert len(written) + len(reported) == len(result.diagnostics)


def test_run_colors_messages_when_enabled() -> None:
    result = run(parse_source(SCENARIO_A, "a.py"), color=True)

    assert result.errors[0].message == (
        "\x1b[31mfunc reference helper is after definition\x1b[0m"
    )


def test_walk_handles_deep_trees_in_order() -> None:
    root = SyntaxNode("file", Position("deep.py", 1, 1))
    current = root
    for line in range(2, 5002):
        child = SyntaxNode("other", Position("deep.py", line, 1))
        current.children.append(child)
        current = child
    events: list[tuple[int, bool]] = []

    def visit(node: SyntaxNode, push: bool) -> bool:
        events.append((node.pos.line, push))
        return node.pos.line != 5000

    walk(root, visit)

    pushed = [line for line, push in events if push]
    popped = [line for line, push in events if not push]
    assert pushed == list(range(1, 5001))
    assert popped == list(range(4999, 0, -1))


def test_run_logs_buffered_report_count(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="check.driver")

    result = run(parse_source(SCENARIO_A, "a.py"), verbose=True)

    assert f"a.py: {len(result.diagnostics)} reports buffered" in caplog.messages
