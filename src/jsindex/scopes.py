from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional

import tree_sitter as ts

from jsindex.errors import CollaboratorError, ScopeMismatchError
from jsindex.logger import file_logger
from jsindex.models import (
    IndexedScope,
    Occurrence,
    SymbolPath,
    escape_path,
    unescape_path,
)


class SymbolTable:
    """
    Mapping from path to the ordered list of its occurrences. The first
    occurrence of every path is the declaring one.
    """

    def __init__(self) -> None:
        self._entries: dict[SymbolPath, list[Occurrence]] = {}

    def __contains__(self, path: SymbolPath) -> bool:
        return escape_path(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, path: SymbolPath) -> Optional[list[Occurrence]]:
        return self._entries.get(escape_path(path))

    def add(self, path: SymbolPath, start_byte: int, end_byte: int) -> Occurrence:
        key = escape_path(path)
        occurrences = self._entries.get(key)
        if occurrences is None:
            occ = Occurrence(start_byte=start_byte, end_byte=end_byte, is_declaration=True)
            self._entries[key] = [occ]
        else:
            occ = Occurrence(start_byte=start_byte, end_byte=end_byte)
            occurrences.append(occ)
        return occ

    def paths(self) -> Iterator[SymbolPath]:
        return (unescape_path(key) for key in self._entries)

    def snapshot(self) -> dict[SymbolPath, tuple[Occurrence, ...]]:
        return {key: tuple(occs) for key, occs in self._entries.items()}


class Scope:
    """A live lexical scope: its symbol table and object-literal context."""

    def __init__(self, node: ts.Node) -> None:
        self.node_id: int = node.id
        self.node_type: str = node.type
        self.start_byte: int = node.start_byte
        self.end_byte: int = node.end_byte
        self.depth: int = 0
        self.table = SymbolTable()
        self.object_context: list[str] = []

    def __repr__(self) -> str:
        return (
            f"Scope({self.node_type}, {self.start_byte}-{self.end_byte}, "
            f"symbols={len(self.table)})"
        )

    def freeze(self) -> IndexedScope:
        return IndexedScope(
            node_type=self.node_type,
            start_byte=self.start_byte,
            end_byte=self.end_byte,
            depth=self.depth,
            symbols=self.table.snapshot(),
        )


class ScopeStack:
    """Open scopes, innermost last."""

    def __init__(self, path: str = "<memory>") -> None:
        self.path = path
        self.log = file_logger(path)
        self._scopes: list[Scope] = []

    def __len__(self) -> int:
        return len(self._scopes)

    def __iter__(self) -> Iterator[Scope]:
        return iter(self._scopes)

    @property
    def innermost(self) -> Scope:
        if not self._scopes:
            raise ScopeMismatchError("no scope is open", path=self.path)
        return self._scopes[-1]

    def push(self, scope: Scope) -> None:
        scope.depth = len(self._scopes)
        self._scopes.append(scope)
        self.log.debug("Scope opened", node_type=scope.node_type, depth=scope.depth)

    def pop(self, node: ts.Node) -> Scope:
        if not self._scopes:
            raise ScopeMismatchError(
                f"scope closed at {node.type} without a matching open", path=self.path
            )
        scope = self._scopes[-1]
        if scope.node_id != node.id:
            raise ScopeMismatchError(
                f"scope opened at {scope.node_type} closed by {node.type}",
                path=self.path,
            )
        return self._scopes.pop()

    def enclosing(self, skip: int = 0) -> Scope:
        """Open scope *skip* levels out from the innermost one."""
        if skip < 0 or skip >= len(self._scopes):
            raise ScopeMismatchError(
                f"no scope open {skip} level(s) out", path=self.path
            )
        return self._scopes[-1 - skip]

    def find(self, path: SymbolPath, skip: int = 0) -> Optional[Scope]:
        """Innermost open scope whose table already holds *path*."""
        for scope in reversed(self._scopes[: len(self._scopes) - skip]):
            if path in scope.table:
                return scope
        return None

    def record(
        self,
        path: SymbolPath,
        start_byte: int,
        end_byte: int,
        declaring: bool = False,
        skip: int = 0,
    ) -> Occurrence:
        """
        Declaring occurrences always land in the innermost scope, shadowing
        any outer entry. Other occurrences join the innermost scope that
        already knows the path, or start a fresh entry in the innermost one.

        *skip* ignores that many innermost scopes, for names that belong
        outside the scope their own node opened (ex: object method keys).
        """
        target = None if declaring else self.find(path, skip)
        if target is None:
            target = self.enclosing(skip)
        return target.table.add(path, start_byte, end_byte)


class ScopeManager(ABC):
    """
    Decides which nodes open and close lexical scopes. The indexer calls
    ``open`` once per tree, ``acquire`` when entering and ``release`` when
    leaving every node, and ``close`` when the walk is over.
    """

    @abstractmethod
    def open(self, tree: ts.Tree) -> None: ...

    @abstractmethod
    def acquire(self, node: ts.Node) -> Optional[Scope]: ...

    @abstractmethod
    def release(self, node: ts.Node) -> bool: ...

    @abstractmethod
    def close(self) -> None: ...


class TreeSitterScopeManager(ScopeManager):
    """Opens a scope at every node whose type is listed in *node_types*."""

    def __init__(self, node_types: Iterable[str]) -> None:
        self.node_types = frozenset(node_types)
        self._tree: Optional[ts.Tree] = None

    def open(self, tree: ts.Tree) -> None:
        if tree is None:
            raise CollaboratorError("scope manager needs a syntax tree")
        self._tree = tree

    def acquire(self, node: ts.Node) -> Optional[Scope]:
        # Keyword tokens share type names with nodes (ex: "function")
        if node.is_named and node.type in self.node_types:
            return Scope(node)
        return None

    def release(self, node: ts.Node) -> bool:
        return node.is_named and node.type in self.node_types

    def close(self) -> None:
        self._tree = None
