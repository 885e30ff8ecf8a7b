from typing import Optional


class IndexingError(ValueError):
    """
    Fatal failure while indexing a single file. Aborts that file only; no
    partial index is produced.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class ParseError(IndexingError):
    pass


class EmptySourceError(IndexingError):
    pass


class CollaboratorError(IndexingError):
    """The parser or the scope manager did not hold up its side of the contract."""


class ScopeMismatchError(IndexingError):
    """A scope was closed without a matching open, or left open."""
