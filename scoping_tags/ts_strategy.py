"""
ts_strategy.py - Tree-sitter based tag extraction for TypeScript / JavaScript.

Supported extensions: .ts .tsx .js .jsx .mts .cts .mjs .cjs
(.ts/.mts/.cts use the TypeScript grammar, the rest the TSX grammar so JSX
parses everywhere it can appear).

Extracted constructs, in pre-order (an outer construct precedes the
constructs nested inside it):
- function_declaration / generator_function_declaration with a name
- variable declarators: a function or arrow literal initializer is tagged as
  "function" spanning the literal; any other initializer as "variable"
  spanning the whole declarator; declarators without initializer are skipped
- class_declaration / abstract_class_declaration with a name
- type_alias_declaration
- interface_declaration

Tree-sitter recovers from syntax errors, so a damaged file still yields the
constructs found in the intact parts of its tree.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser

from scoping_tags.extraction import ExtractionStrategy, split_lines
from scoping_tags.models import ExtractedTag, Language as Lang, TagKind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Extension → grammar mapping
# ---------------------------------------------------------------------------

EXT_TO_GRAMMAR: dict[str, str] = {
    ".ts": "typescript", ".mts": "typescript", ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "tsx", ".jsx": "tsx", ".mjs": "tsx", ".cjs": "tsx",
}

# ---------------------------------------------------------------------------
# Node types of interest
# ---------------------------------------------------------------------------

FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
VARIABLE_DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})
CLASS_DECLARATIONS = frozenset({"class_declaration", "abstract_class_declaration"})
# "function" is the pre-0.21 grammar name of function_expression
FUNCTION_LITERALS = frozenset({
    "arrow_function", "function_expression", "function", "generator_function",
})
NAMED_DECLARATIONS: dict[str, TagKind] = {
    "type_alias_declaration": TagKind.TYPE,
    "interface_declaration":  TagKind.INTERFACE,
}


class TypeScriptStrategy(ExtractionStrategy):
    """Extracts tags from TypeScript and JavaScript sources via tree-sitter."""

    language = Lang.TYPESCRIPT.value
    supported_kinds = frozenset({
        TagKind.FUNCTION, TagKind.VARIABLE, TagKind.CLASS,
        TagKind.TYPE, TagKind.INTERFACE,
    })

    def __init__(self) -> None:
        self._parsers: dict[str, Parser] = {}

    def supported_extensions(self) -> list[str]:
        return list(EXT_TO_GRAMMAR)

    def _parser_for(self, grammar: str) -> Parser:
        parser = self._parsers.get(grammar)
        if parser is None:
            if grammar == "tsx":
                lang = Language(tsts.language_tsx())
            else:
                lang = Language(tsts.language_typescript())
            parser = Parser(lang)
            self._parsers[grammar] = parser
        return parser

    def extract_tags(self, file_path: str) -> list[ExtractedTag]:
        ext = os.path.splitext(file_path)[1].lower()
        grammar = EXT_TO_GRAMMAR.get(ext)
        if grammar is None:
            return []

        try:
            with open(file_path, "rb") as fh:
                source = fh.read()
        except OSError as exc:
            logger.debug("Cannot read '%s': %s", file_path, exc)
            return []

        try:
            tree = self._parser_for(grammar).parse(source)
        except Exception as exc:
            logger.warning("Failed to parse '%s': %s", file_path, exc)
            return []
        if tree is None or tree.root_node is None:
            return []
        if tree.root_node.has_error:
            logger.debug("Syntax errors in '%s'; using recovered tree", file_path)

        lines = split_lines(source.decode("utf-8", errors="replace"))
        tags: list[ExtractedTag] = []

        # Iterative pre-order walk: deep nesting must not hit the recursion limit
        stack: list[Node] = [tree.root_node]
        while stack:
            node = stack.pop()
            self._visit(node, source, lines, tags)
            stack.extend(reversed(node.children))

        return tags

    # ------------------------------------------------------------------
    # Node handlers
    # ------------------------------------------------------------------

    def _visit(
        self,
        node: Node,
        source: bytes,
        lines: list[str],
        tags: list[ExtractedTag],
    ) -> None:
        ntype = node.type
        if ntype in FUNCTION_DECLARATIONS:
            self._add_named(node, TagKind.FUNCTION, source, lines, tags)
        elif ntype in VARIABLE_DECLARATIONS:
            for decl in node.named_children:
                if decl.type == "variable_declarator":
                    self._add_declarator(decl, source, lines, tags)
        elif ntype in CLASS_DECLARATIONS:
            self._add_named(node, TagKind.CLASS, source, lines, tags)
        elif ntype in NAMED_DECLARATIONS:
            self._add_named(node, NAMED_DECLARATIONS[ntype], source, lines, tags)

    def _add_named(
        self,
        node: Node,
        kind: TagKind,
        source: bytes,
        lines: list[str],
        tags: list[ExtractedTag],
    ) -> None:
        name = _node_text(node.child_by_field_name("name"), source)
        if not name:
            return  # anonymous: nothing to key on
        tags.append(self.make_tag(kind, name, *_span(node), lines))

    def _add_declarator(
        self,
        decl: Node,
        source: bytes,
        lines: list[str],
        tags: list[ExtractedTag],
    ) -> None:
        name_node = decl.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            return  # destructuring patterns have no single name
        name = _node_text(name_node, source)
        value = decl.child_by_field_name("value")
        if not name or value is None:
            return

        literal = _unwrap_parens(value)
        if literal.type in FUNCTION_LITERALS:
            tags.append(self.make_tag(TagKind.FUNCTION, name, *_span(literal), lines))
        else:
            tags.append(self.make_tag(TagKind.VARIABLE, name, *_span(decl), lines))


# ---------------------------------------------------------------------------
# Helper functions (module-private)
# ---------------------------------------------------------------------------

def _node_text(node: Optional[Node], source: bytes) -> str:
    """Extract the UTF-8 text for a tree-sitter node."""
    if node is None:
        return ""
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace").strip()


def _span(node: Node) -> tuple[int, int]:
    """1-based inclusive (start_line, end_line) of a node."""
    return node.start_point[0] + 1, node.end_point[0] + 1


def _unwrap_parens(node: Node) -> Node:
    while node.type == "parenthesized_expression" and node.named_child_count == 1:
        node = node.named_children[0]
    return node
