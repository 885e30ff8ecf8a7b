import asyncio
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import pathspec
from pydantic import BaseModel

from jsindex.errors import EmptySourceError
from jsindex.helpers import parse_gitignore
from jsindex.indexer import index_file
from jsindex.logger import logger
from jsindex.models import FileIndex
from jsindex.settings import IndexSettings


class ScanProgress(BaseModel):
    total_files: int
    processed_files: int
    files_indexed: int
    files_failed: int
    elapsed_seconds: float


@dataclass
class ScanResult:
    """Result object returned by `scan_directory`."""

    root: Path
    files: list[FileIndex] = field(default_factory=list)
    files_skipped: list[str] = field(default_factory=list)
    errors: dict[str, Exception] = field(default_factory=dict)


class ProcessFileStatus(Enum):
    SKIPPED = "skipped"
    INDEXED = "indexed"
    ERROR = "error"


@dataclass
class ProcessFileResult:
    status: ProcessFileStatus
    duration: float
    rel_path: str
    file_index: Optional[FileIndex] = None
    exception: Optional[Exception] = None


def _process_file(
    path: Path, root: Path, settings: IndexSettings
) -> ProcessFileResult:
    start = time.perf_counter()
    rel_path = path.relative_to(root).as_posix()
    try:
        file_index = index_file(path, settings=settings, rel_path=rel_path)
        return ProcessFileResult(
            status=ProcessFileStatus.INDEXED,
            duration=time.perf_counter() - start,
            rel_path=rel_path,
            file_index=file_index,
        )
    except EmptySourceError:
        return ProcessFileResult(
            status=ProcessFileStatus.SKIPPED,
            duration=time.perf_counter() - start,
            rel_path=rel_path,
        )
    except Exception as exc:
        return ProcessFileResult(
            status=ProcessFileStatus.ERROR,
            duration=time.perf_counter() - start,
            rel_path=rel_path,
            exception=exc,
        )


def _load_gitignore(root: Path) -> "pathspec.PathSpec":
    combined_spec = pathspec.PathSpec.from_lines("gitwildmatch", [])
    for gi_path in sorted(root.rglob(".gitignore")):
        try:
            combined_spec = combined_spec + parse_gitignore(gi_path, root_dir=root)
        except OSError as exc:
            logger.warning("Failed to parse .gitignore", path=str(gi_path), exc=exc)
    return combined_spec


def collect_files(root: Path, settings: IndexSettings) -> list[Path]:
    """
    Return source files under *root* that a scan would index, sorted by path.
    """
    scanner = settings.scanner
    extensions = {
        ext.lower() if ext.startswith(".") else f".{ext.lower()}"
        for ext in scanner.extensions
    }
    gitignore = _load_gitignore(root) if scanner.respect_gitignore else None

    files: list[Path] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in extensions:
            continue
        rel_path = path.relative_to(root)
        if any(part in scanner.ignored_dirs for part in rel_path.parts):
            continue
        if gitignore is not None and gitignore.match_file(rel_path.as_posix()):
            continue
        files.append(path)
    return files


def _num_workers(settings: IndexSettings) -> int:
    num_workers = settings.scanner.num_workers
    if num_workers is None:
        cpus = os.cpu_count()
        num_workers = max(1, cpus - 1) if cpus else 4
    return num_workers


async def scan_directory(
    root: str | Path,
    settings: Optional[IndexSettings] = None,
    progress_callback: Optional[Callable[[BaseModel], None]] = None,
) -> ScanResult:
    """
    Index every JavaScript file under *root*. Each file gets its own
    independent pass on a worker thread; a fatal error in one file is
    recorded in the result and never stops the scan.
    """
    settings = settings or IndexSettings()
    start_time = time.perf_counter()
    root = Path(root).resolve()
    result = ScanResult(root=root)

    files = collect_files(root, settings)
    num_workers = _num_workers(settings)
    logger.debug("number of workers", count=num_workers, files=len(files))

    loop = asyncio.get_running_loop()
    with ThreadPoolExecutor(max_workers=num_workers) as executor:
        tasks = [
            loop.run_in_executor(executor, _process_file, path, root, settings)
            for path in files
        ]

        processed = 0
        for future in asyncio.as_completed(tasks):
            res: ProcessFileResult = await future
            processed += 1

            if res.status == ProcessFileStatus.INDEXED:
                assert res.file_index is not None
                result.files.append(res.file_index)
                logger.debug(
                    "Indexed file", path=res.rel_path, duration=f"{res.duration:.3f}s"
                )
            elif res.status == ProcessFileStatus.SKIPPED:
                logger.warning("Skipping empty file", path=res.rel_path)
                result.files_skipped.append(res.rel_path)
            else:
                assert res.exception is not None
                logger.error(
                    "Failed to index file", path=res.rel_path, exc=res.exception
                )
                result.errors[res.rel_path] = res.exception

            if progress_callback and (
                processed % settings.scanner.progress_every == 0
                or processed == len(tasks)
            ):
                try:
                    progress_callback(
                        ScanProgress(
                            total_files=len(tasks),
                            processed_files=processed,
                            files_indexed=len(result.files),
                            files_failed=len(result.errors),
                            elapsed_seconds=time.perf_counter() - start_time,
                        )
                    )
                except Exception as cb_exc:
                    logger.error("Progress callback failed", exc=cb_exc)

    # Completion order depends on the pool
    result.files.sort(key=lambda f: f.path)
    result.files_skipped.sort()

    logger.debug(
        "scan_directory finished.",
        duration=f"{time.perf_counter() - start_time:.3f}s",
        files_indexed=len(result.files),
        files_skipped=len(result.files_skipped),
        files_failed=len(result.errors),
    )
    return result
