import threading
from typing import Optional, Union

import tree_sitter as ts
import tree_sitter_javascript as tsjs

from jsindex.errors import ParseError
from jsindex.logger import file_logger
from jsindex.models import NodeKind
from jsindex.settings import ParserSettings

JS_LANGUAGE = ts.Language(tsjs.language())

# One parser per thread, tree-sitter parsers are not safe to share
_local = threading.local()


def _get_parser() -> ts.Parser:
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = ts.Parser(JS_LANGUAGE)
        _local.parser = parser
    return parser


_NODE_KINDS: dict[str, NodeKind] = {
    "identifier": NodeKind.IDENTIFIER,
    "property_identifier": NodeKind.IDENTIFIER,
    "private_property_identifier": NodeKind.IDENTIFIER,
    "shorthand_property_identifier": NodeKind.IDENTIFIER,
    "shorthand_property_identifier_pattern": NodeKind.IDENTIFIER,
    "member_expression": NodeKind.MEMBER_ACCESS,
    "subscript_expression": NodeKind.MEMBER_ACCESS,
    "object": NodeKind.OBJECT_LITERAL,
    "variable_declarator": NodeKind.VARIABLE_BINDING,
    "pair": NodeKind.PROPERTY,
    "method_definition": NodeKind.METHOD,
    "string": NodeKind.LITERAL,
    "number": NodeKind.LITERAL,
    "true": NodeKind.LITERAL,
    "false": NodeKind.LITERAL,
    "null": NodeKind.LITERAL,
    "regex": NodeKind.LITERAL,
    "this": NodeKind.SELF_REFERENCE,
}

# Grammar field names, keyed by the role they play for the indexer
BINDING_NAME = "name"
BINDING_INIT = "value"
PROPERTY_KEY = "key"
PROPERTY_VALUE = "value"
METHOD_NAME = "name"
MEMBER_OBJECT = "object"
MEMBER_PROPERTY = "property"
COMPUTED_PROPERTY = "index"


def classify(node: ts.Node) -> NodeKind:
    """
    Map a tree-sitter node onto the closed set of kinds the indexer
    distinguishes.
    """
    if not node.is_named:
        return NodeKind.OTHER
    return _NODE_KINDS.get(node.type, NodeKind.OTHER)


def member_property(node: ts.Node) -> Optional[ts.Node]:
    """
    Return the accessed property of a member access, either the plain
    property name or the computed index.
    """
    if node.type == "subscript_expression":
        return node.child_by_field_name(COMPUTED_PROPERTY)
    return node.child_by_field_name(MEMBER_PROPERTY)


def parse_source(
    source: Union[str, bytes],
    path: str = "<memory>",
    settings: Optional[ParserSettings] = None,
) -> ts.Tree:
    """
    Parse JavaScript *source* into a tree-sitter tree with byte ranges.

    Raises ``ParseError`` when the source contains syntax errors, unless the
    parser runs in tolerant mode.
    """
    settings = settings or ParserSettings()
    if isinstance(source, str):
        source = source.encode("utf-8")

    tree = _get_parser().parse(source)
    root = tree.root_node
    if root.has_error:
        line = _first_error_line(root)
        if not settings.tolerant:
            raise ParseError(f"syntax error near line {line}", path=path)
        file_logger(path).warning("Indexing source with syntax errors", line=line)
    return tree


def _first_error_line(node: ts.Node) -> int:
    stack = [node]
    while stack:
        cur = stack.pop()
        if cur.type == "ERROR" or cur.is_missing:
            return cur.start_point[0] + 1
        if cur.has_error:
            stack.extend(reversed(cur.children))
    return node.start_point[0] + 1


def get_node_text(node) -> str:
    """
    Get text of the tree sitter node
    """
    if not node or not node.text:
        return ""

    # Non-UTF-8 bytes become U+FFFD
    return node.text.decode("utf-8", errors="replace")
