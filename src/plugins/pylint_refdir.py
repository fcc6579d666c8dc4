"""pylint plugin running the refdir checks.

Load with ``--load-plugins=plugins.pylint_refdir`` and configure directions
with ``refdir-order``, e.g. ``--refdir-order=func:up,var:ignore``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from pylint.checkers import BaseChecker

from check.driver import run
from parse.treesitter_tree import ParseError, parse_source
from rules.policy import OrderPolicy, parse_pairs

if TYPE_CHECKING:
    from astroid import nodes
    from pylint.lint import PyLinter

    from report.diagnostics import Diagnostic


def build_policy(settings: Mapping[str, str] | Iterable[str]) -> OrderPolicy:
    """Translate plugin settings into a policy.

    Accepts either a ``kind -> direction`` map or ``kind:direction`` strings.
    Unknown kinds or directions raise ConfigError.
    """
    if not isinstance(settings, Mapping):
        settings = parse_pairs(settings)
    return OrderPolicy.from_settings(settings)


class RefdirChecker(BaseChecker):
    """C9401: reference ordered against the configured direction."""

    name = "refdir"
    msgs = {
        "C9401": (
            "%s",
            "refdir-order",
            "Used when a reference and its declaration are ordered against "
            "the direction configured for the reference's kind.",
        ),
        "W9402": (
            "refdir could not check module: %s",
            "refdir-unchecked",
            "Used when refdir cannot resolve a module, so its references "
            "were not checked.",
        ),
    }
    options = (
        (
            "refdir-order",
            {
                "default": (),
                "type": "csv",
                "metavar": "<kind:direction,...>",
                "help": (
                    "Direction per reference kind. Kinds: func, type, recvtype, "
                    "var, const. Directions: down, up, ignore."
                ),
            },
        ),
        (
            "refdir-verbose",
            {
                "default": False,
                "type": "yn",
                "metavar": "<y or n>",
                "help": "Include the definition position in messages.",
            },
        ),
    )

    def __init__(self, linter: PyLinter) -> None:
        super().__init__(linter)
        self._policy: OrderPolicy | None = None

    def open(self) -> None:
        self._policy = build_policy(self.linter.config.refdir_order)

    def visit_module(self, node: nodes.Module) -> None:
        if self._policy is None:
            self.open()
        with node.stream() as stream:
            source = stream.read()
        path = node.file or node.name
        try:
            resolved = parse_source(source, path)
        except ParseError as exc:
            self.add_message("refdir-unchecked", node=node, args=(str(exc),))
            return
        # Host terminals are not attached directly, so no color.
        result = run(
            resolved,
            self._policy,
            verbose=bool(self.linter.config.refdir_verbose),
            color=False,
        )
        for diagnostic in result.errors:
            self._add(node, diagnostic)

    def _add(self, node: nodes.Module, diagnostic: Diagnostic) -> None:
        self.add_message(
            "refdir-order",
            node=node,
            line=diagnostic.pos.line,
            col_offset=diagnostic.pos.col - 1,
            end_lineno=diagnostic.pos.line,
            args=(diagnostic.message,),
        )


def register(linter: PyLinter) -> None:
    linter.register_checker(RefdirChecker(linter))


__all__ = ["RefdirChecker", "build_policy", "register"]
