"""Tree-sitter based front end for Python source files."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from tree_sitter import Language, Node, Parser
from tree_sitter_python import language as get_python_language

from parse.name_resolution import Resolver
from parse.scopes import ScopeCollector, node_text
from parse.syntax import ResolvedFile

if TYPE_CHECKING:
    from pathlib import Path

_PARSER: Parser | None = None

_GENERATED = re.compile(r"^# Code generated .* DO NOT EDIT\.$")
_GENERATED_TAG = "@generated"


class ParseError(Exception):
    """Raised when a source file cannot be turned into a resolved tree."""


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with Python language."""
    global _PARSER
    if _PARSER is None:
        lang = Language(get_python_language())
        _PARSER = Parser(lang)

    return _PARSER


def _module_name(path: str) -> str:
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    return name[:-3] if name.endswith(".py") else name


def is_generated(root: Node) -> bool:
    """Check the comments above the first statement for a generated marker."""
    for child in root.children:
        if child.type != "comment":
            break
        text = node_text(child).strip()
        if _GENERATED.match(text) or _GENERATED_TAG in text:
            return True
    return False


def parse_source(source: bytes | str, path: str) -> ResolvedFile:
    """Parse and resolve Python source.

    Args:
        source: Python source text
        path: Path reported in positions (e.g. "pkg/module.py")

    Returns:
        The syntax tree and symbol tables for the module.

    Raises:
        ParseError: If the tree is too deep to resolve.
    """
    source_bytes = source.encode("utf8") if isinstance(source, str) else source
    tree = _get_parser().parse(source_bytes)
    root = tree.root_node

    try:
        collected = ScopeCollector(path, _module_name(path)).collect(root)
        resolver = Resolver(path, collected)
        syntax_root = resolver.build(root)
    except RecursionError as exc:
        msg = "syntax tree nested too deeply to resolve"
        raise ParseError(msg) from exc

    return ResolvedFile(
        path=path,
        root=syntax_root,
        module_scope=collected.module.scope,
        uses=resolver.uses,
        selections=resolver.selections,
        generated=is_generated(root),
    )


def parse_file(file_path: Path, display_path: str | None = None) -> ResolvedFile:
    """Parse and resolve a Python file; raises OSError if it cannot be read."""
    source_bytes = file_path.read_bytes()
    return parse_source(source_bytes, display_path or file_path.as_posix())


__all__ = ["ParseError", "is_generated", "parse_file", "parse_source"]
