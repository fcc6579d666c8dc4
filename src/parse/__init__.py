"""Python front end for refdir."""

from parse.syntax import (
    Definition,
    Position,
    ResolvedFile,
    Scope,
    Selection,
    SyntaxNode,
    walk,
)
from parse.treesitter_tree import ParseError, is_generated, parse_file, parse_source

__all__ = [
    "Definition",
    "ParseError",
    "Position",
    "ResolvedFile",
    "Scope",
    "Selection",
    "SyntaxNode",
    "is_generated",
    "parse_file",
    "parse_source",
    "walk",
]
