import json
from pathlib import Path

import pytest

from jsindex.errors import ParseError
from jsindex.scanner import ScanProgress, collect_files, scan_directory
from jsindex.settings import IndexSettings, ScannerSettings


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------
def _write(root: Path, rel_path: str, content: str) -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _make_tree(root: Path) -> None:
    _write(root, "a.js", "var a = 1; a = 2;\n")
    _write(root, "sub/b.js", "function b(x) { return x; }\n")
    _write(root, "node_modules/c.js", "var c = 1;\n")
    _write(root, "ignored/d.js", "var d = 1;\n")
    _write(root, ".gitignore", "ignored/\n")
    _write(root, "broken.js", "var = ;\n")
    _write(root, "empty.js", "")
    _write(root, "readme.txt", "not javascript\n")


def _settings(**scanner) -> IndexSettings:
    return IndexSettings(scanner=ScannerSettings(num_workers=2, **scanner))


# ---------------------------------------------------------------------------
# tests
# ---------------------------------------------------------------------------
def test_collect_files(tmp_path: Path):
    _make_tree(tmp_path)

    files = [p.relative_to(tmp_path).as_posix() for p in collect_files(tmp_path, _settings())]

    assert files == ["a.js", "broken.js", "empty.js", "sub/b.js"]


def test_collect_files_without_gitignore(tmp_path: Path):
    _make_tree(tmp_path)

    files = collect_files(tmp_path, _settings(respect_gitignore=False))

    assert tmp_path / "ignored" / "d.js" in files
    assert tmp_path / "node_modules" / "c.js" not in files


@pytest.mark.asyncio
async def test_scan_directory(tmp_path: Path):
    _make_tree(tmp_path)
    progress: list[ScanProgress] = []

    result = await scan_directory(
        tmp_path, _settings(progress_every=1), progress_callback=progress.append
    )

    assert [f.path for f in result.files] == ["a.js", "sub/b.js"]
    assert result.files_skipped == ["empty.js"]
    assert list(result.errors) == ["broken.js"]
    assert isinstance(result.errors["broken.js"], ParseError)

    a_index = result.files[0]
    assert len(a_index.scopes[0].lookup("a")) == 2
    b_index = result.files[1]
    assert [s.node_type for s in b_index.scopes] == ["program", "function_declaration"]

    assert len(progress) == 4
    assert progress[-1].processed_files == progress[-1].total_files == 4
    assert progress[-1].files_indexed == 2
    assert progress[-1].files_failed == 1


@pytest.mark.asyncio
async def test_scan_directory_tolerant(tmp_path: Path):
    _make_tree(tmp_path)
    settings = _settings()
    settings.parser.tolerant = True

    result = await scan_directory(tmp_path, settings)

    assert [f.path for f in result.files] == ["a.js", "broken.js", "sub/b.js"]
    assert not result.errors


@pytest.mark.asyncio
async def test_failing_progress_callback_does_not_stop_scan(tmp_path: Path):
    _make_tree(tmp_path)

    def _boom(_progress):
        raise RuntimeError("boom")

    result = await scan_directory(tmp_path, _settings(), progress_callback=_boom)

    assert len(result.files) == 2


@pytest.mark.asyncio
async def test_scan_results_serialize(tmp_path: Path):
    _write(tmp_path, "x.js", "var x = 1; x = 2;")

    result = await scan_directory(tmp_path, _settings())

    data = json.loads(result.files[0].to_json())
    assert data["path"] == "x.js"
    assert data["scopes"][0] == {"x": [[4, 5, True], [11, 12]]}
