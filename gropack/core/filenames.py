from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Union

_DOUBLE_SLASH_RE = re.compile(r"//+")

# Multiplayer directories of the alternate engine fork -> index of the "mp" infix
_VARIANT_DIR_PREFIXES = (
    ("animationsmp", 10),
    ("texturesmp", 8),
    ("modelsmp", 6),
    ("soundsmp", 6),
    ("musicmp", 5),
    ("datamp", 4),
)


@dataclass(frozen=True)
class NormalizedPath:
    path: str
    nonstandard: bool = False  # slash idioms of the alternate engine fork were seen

    def __str__(self) -> str:
        return self.path


def normalize_filename(raw: Union[str, NormalizedPath]) -> NormalizedPath:
    """
    Canonicalize an extracted filename:
      - backslashes become forward slashes
      - runs of slashes collapse into one
      - a single leading slash is stripped

    Forward slashes in the raw string, doubled slashes and a leading slash are
    only written by the alternate engine fork, so any of them marks the result
    as nonstandard.
    """
    if isinstance(raw, NormalizedPath):
        return raw

    nonstandard = "/" in raw
    text = raw.replace("\\", "/")

    collapsed = _DOUBLE_SLASH_RE.sub("/", text)
    if collapsed != text:
        nonstandard = True

    if collapsed.startswith("/"):
        collapsed = collapsed[1:]
        nonstandard = True

    return NormalizedPath(collapsed, nonstandard)


def dependency_key(path: Union[str, NormalizedPath]) -> str:
    return str(path).lower()


def file_ext(path: str) -> str:
    # lowercase with dot, "" when there is none
    return os.path.splitext(path)[1].lower()


def remove_ext(path: str) -> str:
    return os.path.splitext(path)[0]


def substitute_extension(path: str, ext: str) -> str:
    return remove_ext(path) + ext


def replace_variant_dirs(path: str) -> str:
    """Strip the "mp" infix from a multiplayer top directory (ModelsMP/ -> Models/)."""
    check = path.lower()
    for prefix, index in _VARIANT_DIR_PREFIXES:
        if check.startswith(prefix):
            return path[:index] + path[index + 2:]
    return path


def replace_spaces(path: str) -> str:
    return path.replace(" ", "_")


def escapes_root(name: str) -> bool:
    """True when a root-relative name is absolute or contains a ".." part."""
    path = PurePosixPath(name)
    return path.is_absolute() or ".." in path.parts


def _is_file(path: Path) -> bool:
    # over-long or otherwise unusable names count as missing
    try:
        return path.is_file()
    except OSError:
        return False


def locate_file(root: str, name: str, variant: bool = False) -> Optional[Path]:
    """
    On-disk location of a root-relative file.

    Runs of the alternate fork may reference multiplayer directories that are
    shipped under the regular name, so those get a second lookup. Names that
    escape the root are never found.
    """
    if escapes_root(name):
        return None

    base = Path(root)
    path = base / name
    if _is_file(path):
        return path

    if variant:
        alt = replace_variant_dirs(name)
        if alt != name:
            path = base / alt
            if _is_file(path):
                return path

    return None


def relative_name(root: str, path: Path) -> str:
    return path.relative_to(Path(root)).as_posix()
