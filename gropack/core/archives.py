from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Iterable, Optional

from gropack.core.depends import ScanContext
from gropack.core.filenames import dependency_key, file_ext, normalize_filename
from gropack.core.profiles import GameProfile

ARCHIVE_EXT = ".gro"


def ignore_archive(ctx: ScanContext, name: str) -> int:
    """
    Treat every file inside a root-relative archive as a standard dependency.
    Returns the number of new keys.
    """
    path = Path(ctx.root) / name
    if not path.is_file():
        ctx.add_issue("WARNING", "IGNORE_NOT_FOUND", f'"{name}" does not exist!', name)
        return 0

    added = 0
    try:
        with zipfile.ZipFile(path) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                if ctx.depends.insert(dependency_key(info.filename)):
                    added += 1
    except (OSError, zipfile.BadZipFile) as e:
        ctx.add_issue("WARNING", "IGNORE_BAD_ARCHIVE", f"Can't read archive {name} ({e})", name)
        return added

    ctx.log(f"Ignoring {added} file(s) from {name}")
    return added


def ignore_dependency(ctx: ScanContext, name: str) -> bool:
    """Declare a single file (or a whole .gro archive) as already satisfied."""
    name = normalize_filename(name).path
    if file_ext(name) == ARCHIVE_EXT:
        return ignore_archive(ctx, name) > 0

    if not (Path(ctx.root) / name).is_file():
        ctx.add_issue("WARNING", "IGNORE_NOT_FOUND", f'"{name}" does not exist!', name)
        return False

    return ctx.depends.insert(dependency_key(name))


def ignore_dependencies(ctx: ScanContext, names: Iterable[str]) -> None:
    for name in names:
        ignore_dependency(ctx, name)


def detect_game(root: str, profiles: Iterable[GameProfile]) -> Optional[GameProfile]:
    base = Path(root)
    for prof in profiles:
        if prof.detect_files and all((base / f).is_file() for f in prof.detect_files):
            return prof
    return None


def ignore_game(ctx: ScanContext, profile: GameProfile, apply_flags: bool) -> None:
    ctx.log(f"Detected archives from {profile.name}...")
    if apply_flags:
        ctx.mark(profile.scan_flags())

    for name in profile.ignore_archives:
        ignore_archive(ctx, name)
