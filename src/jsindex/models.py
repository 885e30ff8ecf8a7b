import json
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class NodeKind(str, Enum):
    IDENTIFIER = "identifier"
    MEMBER_ACCESS = "member_access"
    OBJECT_LITERAL = "object_literal"
    VARIABLE_BINDING = "variable_binding"
    PROPERTY = "property"
    METHOD = "method"
    LITERAL = "literal"
    SELF_REFERENCE = "self_reference"
    OTHER = "other"


# Generic types
SymbolPath = str

# Reserved fragment, stored with a leading space
CONSTRUCTOR = "constructor"
ESCAPE_PREFIX = " "


def _escape_fragment(frag: str) -> str:
    # Fragments already starting with the prefix get another one, so that
    # " constructor" and "constructor" keep distinct keys
    if frag == CONSTRUCTOR or frag.startswith(ESCAPE_PREFIX):
        return ESCAPE_PREFIX + frag
    return frag


def escape_path(path: SymbolPath) -> SymbolPath:
    """Map a dotted path into the symbol table key space."""
    if CONSTRUCTOR not in path and ESCAPE_PREFIX not in path:
        return path
    return ".".join(_escape_fragment(frag) for frag in path.split("."))


def unescape_path(key: SymbolPath) -> SymbolPath:
    if ESCAPE_PREFIX not in key:
        return key
    return ".".join(
        frag[len(ESCAPE_PREFIX) :] if frag.startswith(ESCAPE_PREFIX) else frag
        for frag in key.split(".")
    )


# Core data containers
class Occurrence(BaseModel):
    start_byte: int
    end_byte: int
    is_declaration: bool = False

    model_config = {"frozen": True}

    def to_list(self) -> list[Any]:
        """
        Interchange form: ``[start, end, true]`` for the declaring occurrence,
        ``[start, end]`` for every later one.
        """
        if self.is_declaration:
            return [self.start_byte, self.end_byte, True]
        return [self.start_byte, self.end_byte]


class IndexedScope(BaseModel):
    """Immutable snapshot of one lexical scope and its symbol table."""

    node_type: str
    start_byte: int
    end_byte: int
    depth: int = 0

    # Keys are table keys (``constructor`` fragments escaped)
    symbols: Dict[SymbolPath, Tuple[Occurrence, ...]] = Field(default_factory=dict)

    model_config = {"frozen": True}

    def lookup(self, path: SymbolPath) -> Optional[Tuple[Occurrence, ...]]:
        return self.symbols.get(escape_path(path))

    def to_dict(self) -> dict[str, Any]:
        return {
            path: [occ.to_list() for occ in occurrences]
            for path, occurrences in self.symbols.items()
        }


class FileIndex(BaseModel):
    path: str  # file identifier, diagnostics only
    file_hash: Optional[str] = None
    scopes: List[IndexedScope] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "file_hash": self.file_hash,
            "scopes": [scope.to_dict() for scope in self.scopes],
        }

    def to_json(self, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), indent=4 if pretty else None)
