from jsindex.errors import (
    CollaboratorError,
    EmptySourceError,
    IndexingError,
    ParseError,
    ScopeMismatchError,
)
from jsindex.indexer import index_file, index_source, index_tree
from jsindex.models import FileIndex, IndexedScope, NodeKind, Occurrence
from jsindex.scanner import ScanResult, scan_directory
from jsindex.settings import IndexSettings

__all__ = [
    "CollaboratorError",
    "EmptySourceError",
    "FileIndex",
    "IndexSettings",
    "IndexedScope",
    "IndexingError",
    "NodeKind",
    "Occurrence",
    "ParseError",
    "ScanResult",
    "ScopeMismatchError",
    "index_file",
    "index_source",
    "index_tree",
    "scan_directory",
]
