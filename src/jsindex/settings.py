from typing import Optional, List

from pydantic import Field, BaseModel
from pydantic_settings import BaseSettings


class ScopeSettings(BaseModel):
    """Settings for the default scope manager."""

    node_types: set[str] = Field(
        default_factory=lambda: {
            "program",
            "function_declaration",
            "function_expression",
            "function",
            "generator_function_declaration",
            "generator_function",
            "arrow_function",
            "method_definition",
            "catch_clause",
        },
        description=(
            "Tree-sitter node types that open a new lexical scope. The scope "
            "closes when the traversal leaves the same node."
        ),
    )


class ParserSettings(BaseModel):
    """Settings for the JavaScript parser."""

    tolerant: bool = Field(
        default=False,
        description=(
            "If True, sources with syntax errors are still indexed (error nodes "
            "are walked like any other node). If False, a syntax error aborts "
            "indexing of that file."
        ),
    )


class PathSettings(BaseModel):
    """Settings for symbol path synthesis."""

    unresolved_marker: str = Field(
        default="?",
        description=(
            "Placeholder fragment used when part of a member chain cannot be "
            "resolved to a name (ex: `this`, call results)."
        ),
    )


class ScannerSettings(BaseModel):
    """Settings for directory scans."""

    extensions: List[str] = Field(
        default_factory=lambda: [".js", ".mjs", ".cjs", ".jsx"],
        description="File extensions that are indexed during a directory scan.",
    )
    ignored_dirs: set[str] = Field(
        default_factory=lambda: {
            ".git",
            ".hg",
            ".svn",
            ".idea",
            ".vscode",
            "node_modules",
            "bower_components",
        },
        description="A set of directory names to ignore during directory scans.",
    )
    respect_gitignore: bool = Field(
        default=True,
        description="If True, paths matched by .gitignore files are skipped.",
    )
    num_workers: Optional[int] = Field(
        default=None,
        description=(
            "Number of worker threads for the scanner. If None, it defaults to "
            "`os.cpu_count() - 1` (min 1, fallback 4)."
        ),
    )
    progress_every: int = Field(
        default=100,
        ge=1,
        description="Invoke the progress callback after every N processed files.",
    )


class IndexSettings(BaseSettings):
    """Top-level settings for the indexer."""

    scopes: ScopeSettings = Field(
        default_factory=ScopeSettings,
        description="Settings for scope boundaries.",
    )
    parser: ParserSettings = Field(
        default_factory=ParserSettings,
        description="Settings for the JavaScript parser.",
    )
    paths: PathSettings = Field(
        default_factory=PathSettings,
        description="Settings for symbol path synthesis.",
    )
    scanner: ScannerSettings = Field(
        default_factory=ScannerSettings,
        description="Settings for directory scans.",
    )
