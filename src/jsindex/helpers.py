import hashlib
import os
from pathlib import Path
from typing import Union

import pathspec


def compute_content_hash(content: Union[str, bytes]) -> str:
    """
    Return the SHA-256 hex-digest of *content*.
    Accepts either ``str`` (automatically UTF-8-encoded) or raw ``bytes``.
    """
    sha256 = hashlib.sha256()
    if isinstance(content, str):
        content = content.encode("utf-8")
    sha256.update(content)
    return sha256.hexdigest()


def parse_gitignore(
    gitignore_path: str | Path, *, root_dir: str | Path | None = None
) -> "pathspec.PathSpec":
    """
    Parse a .gitignore file at gitignore_path and return a pathspec.PathSpec
    built with the 'gitwildmatch' syntax (same as Git).
    If root_dir is provided, patterns from nested .gitignore files are rewritten
    to be relative to the scan root:
      - '/pat'      -> '<subdir>/pat'
      - 'pat'       -> '<subdir>/**/pat'
      - 'dir/pat'   -> '<subdir>/dir/pat'
    Negations '!' are preserved and rewritten accordingly.
    """
    gitignore_file = Path(gitignore_path)
    if not gitignore_file.is_file():
        return pathspec.PathSpec.from_lines("gitwildmatch", [])

    raw_lines: list[str] = []
    for raw in gitignore_file.read_text().splitlines():
        raw = raw.rstrip()
        if not raw or raw.lstrip().startswith("#"):
            continue
        raw_lines.append(raw)

    if root_dir is None:
        return pathspec.PathSpec.from_lines("gitwildmatch", raw_lines)

    root = Path(root_dir).resolve()
    base_dir = gitignore_file.parent.resolve()
    try:
        dir_rel = "/".join(base_dir.relative_to(root).parts)
    except ValueError:
        dir_rel = "/".join(base_dir.parts)
    base_prefix = f"{dir_rel}/" if dir_rel else ""

    def _rewrite(pat: str) -> str:
        p = pat.replace(os.sep, "/")
        if p.startswith("/"):
            # anchored to the .gitignore's directory
            return base_prefix + p.lstrip("/")
        if "/" in p.rstrip("/"):
            # path component present: match relative to this directory
            return base_prefix + p
        # no separator: match anywhere under this directory
        return base_prefix + "**/" + p

    rewritten: list[str] = []
    for raw in raw_lines:
        if raw.startswith("!"):
            rewritten.append("!" + _rewrite(raw[1:]))
        else:
            rewritten.append(_rewrite(raw))

    return pathspec.PathSpec.from_lines("gitwildmatch", rewritten)
