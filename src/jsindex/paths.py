"""
Canonical dotted names ("paths") for identifiers, member chains and
properties nested in object literals.
"""

from typing import Iterable, Optional

import tree_sitter as ts

from jsindex.logger import file_logger
from jsindex.models import NodeKind, SymbolPath
from jsindex.parsers import (
    MEMBER_OBJECT,
    classify,
    get_node_text,
    member_property,
)


class PathResolver:
    def __init__(self, unresolved_marker: str = "?", path: str = "<memory>") -> None:
        self.unresolved_marker = unresolved_marker
        self.path = path
        self.log = file_logger(path)

    def resolve(self, node: Optional[ts.Node]) -> SymbolPath:
        """
        Render the canonical path of a member chain. Identifiers contribute
        their name, literals their value and member accesses
        ``resolve(object) + "." + resolve(property)``. Anything else yields
        the unresolved marker.
        """
        if node is None:
            return self.unresolved_marker

        kind = classify(node)
        if kind == NodeKind.IDENTIFIER:
            return get_node_text(node)
        if kind == NodeKind.MEMBER_ACCESS:
            obj = self.resolve(node.child_by_field_name(MEMBER_OBJECT))
            prop = member_property(node)
            if prop is not None and node.type == "subscript_expression":
                # Only constant keys name a property
                if classify(prop) != NodeKind.LITERAL:
                    return f"{obj}.{self._unresolved(prop)}"
            return f"{obj}.{self.resolve(prop)}"
        if kind == NodeKind.LITERAL:
            return literal_value(node)
        return self._unresolved(node)

    def key_name(self, node: Optional[ts.Node]) -> SymbolPath:
        """Name of an object-literal property key."""
        if node is not None and classify(node) in (
            NodeKind.IDENTIFIER,
            NodeKind.LITERAL,
        ):
            return self.resolve(node)
        return self._unresolved(node)

    def _unresolved(self, node: Optional[ts.Node]) -> str:
        if node is not None:
            self.log.debug(
                "Unresolved path fragment",
                node_type=node.type,
                line=node.start_point[0] + 1,
            )
        return self.unresolved_marker


def literal_value(node: ts.Node) -> str:
    text = get_node_text(node)
    if node.type == "string" and len(text) >= 2:
        return text[1:-1]
    return text


def join_path(prefix: Iterable[str], suffix: str) -> SymbolPath:
    """Prefix *suffix* with the joined object-literal context."""
    head = ".".join(prefix)
    if head:
        return f"{head}.{suffix}"
    return suffix
