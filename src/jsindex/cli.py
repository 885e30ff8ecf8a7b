import asyncio
import json
from pathlib import Path
from typing import Optional

import click
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from jsindex import settings
from jsindex.errors import IndexingError
from jsindex.indexer import index_file
from jsindex.logger import configure_logging, logger
from jsindex.models import FileIndex, unescape_path
from jsindex.scanner import scan_directory


def load_settings(
    env_prefix: Optional[str] = None,
    env_file: Optional[str] = None,
    toml_file: Optional[str] = None,
    json_file: Optional[str] = None,
    **kwargs,
) -> settings.IndexSettings:
    """
    Build ``IndexSettings`` from keyword overrides, environment variables
    (nested fields use ``__``, ex: ``JSINDEX_PARSER__TOLERANT``), an optional
    dotenv file and optional TOML / JSON files, in that order of precedence.
    """
    config_dict = SettingsConfigDict(
        env_prefix=env_prefix or "",
        env_nested_delimiter="__",
        env_file=env_file,
        toml_file=toml_file,
        json_file=json_file,
    )

    class Settings(settings.IndexSettings):
        model_config = config_dict

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            sources = [init_settings, env_settings, dotenv_settings]
            if toml_file:
                sources.append(TomlConfigSettingsSource(settings_cls))
            if json_file:
                sources.append(JsonConfigSettingsSource(settings_cls))
            sources.append(file_secret_settings)
            return tuple(sources)

    return Settings(**kwargs)


def format_text(file_index: FileIndex) -> str:
    lines = [file_index.path]
    for scope in file_index.scopes:
        indent = "  " * (scope.depth + 1)
        lines.append(
            f"{indent}[{scope.node_type} {scope.start_byte}-{scope.end_byte}]"
        )
        for key, occurrences in scope.symbols.items():
            ranges = ", ".join(
                f"{occ.start_byte}-{occ.end_byte}{'*' if occ.is_declaration else ''}"
                for occ in occurrences
            )
            lines.append(f"{indent}  {unescape_path(key)}: {ranges}")
    return "\n".join(lines)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "sources",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, readable=True, path_type=Path),
)
@click.option(
    "--json/--text",
    "as_json",
    default=False,
    help="Print the index as JSON instead of an indented listing.",
)
@click.option(
    "--pretty/--compact",
    default=True,
    help="Indent JSON output.",
)
@click.option(
    "--tolerant/--strict",
    default=None,
    help="Index files with syntax errors instead of failing them.",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML or JSON settings file.",
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug logging.",
)
def main(
    sources: tuple[Path, ...],
    as_json: bool,
    pretty: bool,
    tolerant: Optional[bool],
    config_file: Optional[Path],
    debug: bool,
) -> None:
    """
    Index JavaScript SOURCES (files or directories) into per-scope symbol
    tables and print them. Declaring occurrences are marked with '*'.
    """
    configure_logging(debug)

    config_kwargs: dict[str, str] = {}
    if config_file is not None:
        key = "json_file" if config_file.suffix.lower() == ".json" else "toml_file"
        config_kwargs[key] = str(config_file)
    cfg = load_settings(env_prefix="JSINDEX_", **config_kwargs)
    if tolerant is not None:
        cfg.parser.tolerant = tolerant

    indexes: list[FileIndex] = []
    failures: dict[str, Exception] = {}
    for src in sources:
        if src.is_dir():
            result = asyncio.run(scan_directory(src, cfg))
            indexes.extend(result.files)
            for rel_path, exc in result.errors.items():
                failures[str(src / rel_path)] = exc
            continue
        try:
            indexes.append(index_file(src, settings=cfg))
        except (IndexingError, OSError) as exc:
            logger.debug("index_file_error", path=str(src), error=str(exc))
            failures[str(src)] = exc

    if as_json:
        click.echo(
            json.dumps([f.to_dict() for f in indexes], indent=4 if pretty else None)
        )
    else:
        for file_index in indexes:
            click.echo(format_text(file_index))

    for path, exc in failures.items():
        # Indexing errors already name their file
        message = str(exc) if isinstance(exc, IndexingError) else f"{path}: {exc}"
        click.echo(f"error: {message}", err=True)

    raise SystemExit(1 if failures else 0)


if __name__ == "__main__":
    main()
