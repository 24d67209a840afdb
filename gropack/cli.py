from __future__ import annotations

import argparse
import sys
import zipfile
from pathlib import Path
from typing import List, Optional, Tuple

from gropack.config import APP_NAME, APP_VERSION, DEFAULT_STORE_EXTENSIONS
from gropack.core.depends import FLAG_NAMES
from gropack.core.reporting import export_run
from gropack.core.scanner import RunResult, run
from gropack.models import PackOptions

LEVELS_DIR = "levels"


def root_from_world_path(world: str) -> Tuple[str, str]:
    """
    Split a full world path at its "Levels" folder.
    Returns (game root, world path relative to the root).
    """
    path = Path(world).resolve()
    parts = path.parts
    for idx in range(len(parts) - 2, -1, -1):
        if parts[idx].lower() == LEVELS_DIR:
            root = Path(*parts[:idx])
            return str(root), Path(*parts[idx:]).as_posix()
    raise ValueError("World files must reside within the 'Levels' folder of a game directory")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gropack",
        description="Collect the resources a world (or any game file) depends on and pack them into a GRO archive.",
    )
    parser.add_argument("world", nargs="?", help="Full path to a world file inside a game's Levels folder")
    parser.add_argument("-r", "--root", help="Root directory of the game")
    parser.add_argument("-o", "--output", help="Output GRO file (absolute or relative to the root)")
    parser.add_argument("-i", "--scan", action="append", default=[], metavar="FILE",
                        help="File to scan for dependencies, relative to the root (repeatable)")
    parser.add_argument("-s", "--store", action="append", default=[], metavar="EXT",
                        help="Pack files with this extension without compression (repeatable)")
    parser.add_argument("-d", "--depend", action="append", default=[], metavar="FILE",
                        help="Resource or whole GRO archive to treat as already available (repeatable)")
    parser.add_argument("-f", "--flag", action="append", default=[], choices=sorted(FLAG_NAMES),
                        help="ssr: alternate fork world, ini: pack model configs, ogg: OGG may replace MP3, "
                             "dep: list dependencies only, gro: ignore archives of the detected game")
    parser.add_argument("--manifest", help="Write a JSON manifest of the run")
    parser.add_argument("--report", help="Write an HTML report of the run")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def options_from_args(args: argparse.Namespace) -> Tuple[PackOptions, bool]:
    """Returns (options, whether game flags come from the detected game)."""
    if args.world and not (args.root or args.scan):
        root, world = root_from_world_path(args.world)
        flags = list(args.flag)
        if "gro" not in flags:
            flags.append("gro")
        output = args.output or f"{Path(world).stem}_deps.gro"
        opts = PackOptions(
            root=root,
            output=output,
            sources=[world],
            store_extensions=list(args.store) or list(DEFAULT_STORE_EXTENSIONS),
            ignore=list(args.depend),
            flags=flags,
        )
        return opts, True

    sources = list(args.scan)
    if args.world:
        sources.append(args.world)

    opts = PackOptions(
        root=args.root or "",
        output=args.output or "",
        sources=sources,
        store_extensions=list(args.store),
        ignore=list(args.depend),
        flags=list(args.flag),
    )
    return opts, False


def _print_list(title: str, items: List[str]) -> None:
    print(title)
    for item in items:
        print(f"- {item}")
    print()


def print_result(result: RunResult) -> None:
    for i in result.issues:
        if i.code == "FILE_MISSING":
            continue
        suffix = f" ({i.relpath})" if i.relpath and i.relpath not in i.message else ""
        print(f"[{i.level}] {i.code}: {i.message}{suffix}")

    if result.ctx is None:
        return

    if result.output is None:
        if result.missing:
            _print_list("\nFiles that aren't on disk:", result.missing)
        elif not result.blocked:
            print("\nAll files exist!")
        return

    if result.missing:
        _print_list("\nCouldn't pack these files:", result.missing)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    print(f"{APP_NAME} {APP_VERSION}\n")

    try:
        options, game_flags = options_from_args(args)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    try:
        result = run(options, log_cb=print, apply_game_flags=game_flags)
    except (OSError, zipfile.BadZipFile) as e:
        print(f"Error: {e}")
        return 1

    print_result(result)

    if result.ctx is not None and (args.manifest or args.report):
        try:
            for path in export_run(result, args.manifest, args.report):
                print(f"Written: {path}")
        except OSError as e:
            print(f"Error: export failed ({e})")
            return 1

    return 1 if result.blocked else 0


if __name__ == "__main__":
    sys.exit(main())
