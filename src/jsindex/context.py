from dataclasses import dataclass
from typing import Optional

import tree_sitter as ts

from jsindex.models import NodeKind


@dataclass
class Frame:
    node: ts.Node
    kind: NodeKind
    field: Optional[str]  # field of the parent this node is stored under
    name: Optional[str] = None  # resolved path, member accesses only
    pushed_context: bool = False  # pushed an object-literal context entry


class ParentContext:
    """
    Live ancestor vector of the traversal. Position ``len - 1`` is the node
    being visited, position 0 the root.

    Both queries take an optional ``offset`` naming the position of the
    child; it defaults to the current node, pass a smaller one to ask about
    grandparents and beyond.
    """

    def __init__(self) -> None:
        self._frames: list[Frame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, frame: Frame) -> None:
        self._frames.append(frame)

    def pop(self) -> Frame:
        return self._frames.pop()

    @property
    def current(self) -> Frame:
        return self._frames[-1]

    def at(self, offset: int) -> Optional[Frame]:
        if 0 <= offset < len(self._frames):
            return self._frames[offset]
        return None

    def parent(self, offset: Optional[int] = None) -> Optional[Frame]:
        if offset is None:
            offset = len(self._frames) - 1
        return self.at(offset - 1)

    def is_child(self, field: str, offset: Optional[int] = None) -> bool:
        """Is the node at *offset* stored under *field* of the node before it."""
        if offset is None:
            offset = len(self._frames) - 1
        frame = self.at(offset)
        return offset > 0 and frame is not None and frame.field == field

    def parent_kind_is(self, kind: NodeKind, offset: Optional[int] = None) -> bool:
        """Does the node before *offset* have *kind*."""
        parent = self.parent(offset)
        return parent is not None and parent.kind == kind
