from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from gropack.config import PROFILES_DIR
from gropack.core.archives import detect_game, ignore_dependencies, ignore_game
from gropack.core.depends import ScanContext, ScanFlags, parse_flags
from gropack.core.dictionary import scan_world
from gropack.core.errors import FormatError
from gropack.core.filenames import file_ext, normalize_filename
from gropack.core.generic import scan_generic
from gropack.core.pack import PackSummary, execute_pack
from gropack.core.planner import build_pack_plan
from gropack.core.profiles import load_profiles
from gropack.core.validator import validate_options
from gropack.models import PackOptions, PackPlanItem, ValidationResult

WORLD_EXT = ".wld"


@dataclass
class RunResult:
    ctx: Optional[ScanContext]
    issues: List[ValidationResult] = field(default_factory=list)
    plan: List[PackPlanItem] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    summary: Optional[PackSummary] = None
    hashes_by_src: Dict[str, str] = field(default_factory=dict)
    output: Optional[str] = None

    @property
    def blocked(self) -> bool:
        return any(i.level.upper() == "ERROR" for i in self.issues)


def scan_source(ctx: ScanContext, name: str) -> None:
    """Scan one root-relative file; errors propagate to the caller."""
    if file_ext(name) == WORLD_EXT:
        scan_world(ctx, name)
    else:
        scan_generic(ctx, name)


def scan_sources(ctx: ScanContext, sources: Iterable[str]) -> int:
    """
    Schedule and scan every source. A broken or unreadable file is recorded
    as an ERROR and the remaining sources are still scanned.
    Returns the number of sources that failed.
    """
    failed = 0
    for src in sources:
        name = normalize_filename(src).path
        ctx.schedule(name, announce=False)
        ctx.log(f"Extra dependencies for '{name}':")

        try:
            scan_source(ctx, name)
        except FormatError as e:
            failed += 1
            ctx.add_issue("ERROR", "FORMAT_ERROR", str(e.with_filename(name)), name)
            ctx.log(f"Error: {e.with_filename(name)}")
        except OSError as e:
            failed += 1
            ctx.add_issue("ERROR", "SOURCE_UNREADABLE", f"Can't read {name} ({e})", name)
            ctx.log(f"Error: can't read {name} ({e})")
    return failed


def resolve_output(root: str, output: str) -> str:
    path = Path(output)
    if not path.is_absolute():
        path = Path(root) / path
    return str(path)


def prepare_context(
    options: PackOptions,
    log_cb: Optional[Callable[[str], None]] = None,
    profiles_dir: Optional[str] = None,
    apply_game_flags: bool = False,
) -> ScanContext:
    """Build the context and fill the standard dependencies, then freeze them."""
    ctx = ScanContext(root=options.root, flags=parse_flags(options.flags), log_cb=log_cb)

    if ctx.has(ScanFlags.DETECT_GAME):
        profiles = load_profiles(profiles_dir or str(PROFILES_DIR))
        game = detect_game(ctx.root, profiles.values())
        if game is None:
            ctx.add_issue(
                "WARNING",
                "GAME_NOT_DETECTED",
                "Couldn't automatically determine the game directory "
                "(no known standard archives in the game folder).",
                None,
            )
        else:
            ignore_game(ctx, game, apply_game_flags)

    ignore_dependencies(ctx, options.ignore)

    ctx.depends.freeze()
    ctx.log(f"Standard dependencies: {len(ctx.depends)}")
    return ctx


def run(
    options: PackOptions,
    log_cb: Optional[Callable[[str], None]] = None,
    progress_cb: Optional[Callable[[int, int, PackPlanItem], None]] = None,
    profiles_dir: Optional[str] = None,
    apply_game_flags: bool = False,
) -> RunResult:
    """
    Validate options, collect dependencies of every source and pack them
    (or, in dependencies-only mode, just check which exist).

    Archive write errors propagate.
    """
    issues = validate_options(options)
    if any(i.level.upper() == "ERROR" for i in issues):
        return RunResult(ctx=None, issues=issues)

    ctx = prepare_context(options, log_cb, profiles_dir, apply_game_flags)
    failed = scan_sources(ctx, options.sources)

    plan, missing, plan_issues = build_pack_plan(
        ctx.scheduled,
        ctx.root,
        options.store_extensions,
        ctx.variant,
    )

    result = RunResult(ctx=ctx, plan=plan, missing=missing)
    result.issues = issues + ctx.issues + plan_issues

    if ctx.has(ScanFlags.DEPENDENCIES_ONLY):
        result.summary = PackSummary(total=len(plan) + len(missing), packed=0, missing=len(missing))
        return result

    if failed:
        # no archive when a source failed to scan
        ctx.log("Packing skipped: some files could not be scanned.")
        return result

    result.output = resolve_output(ctx.root, options.output)
    ctx.log("Packing files...")
    summary, hashes = execute_pack(plan, result.output, missing, progress_cb=progress_cb)
    result.summary = summary
    result.hashes_by_src = hashes
    ctx.log(f"\"{result.output}\" is ready!")
    return result
