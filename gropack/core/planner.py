from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from gropack.core.filenames import dependency_key, escapes_root, file_ext, locate_file, relative_name
from gropack.models import PackPlanItem, ScheduledFile, ValidationResult


def normalize_store_ext(ext: str) -> str:
    # "ogg", ".OGG" -> ".ogg"
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def normalize_store_exts(exts: Iterable[str]) -> Set[str]:
    return {normalize_store_ext(e) for e in exts if e.strip()}


def build_pack_plan(
    scheduled: Iterable[ScheduledFile],
    root: str,
    store_extensions: Iterable[str] = (),
    variant: bool = False,
) -> Tuple[List[PackPlanItem], List[str], List[ValidationResult]]:
    """
    Resolve scheduled files on disk:
      - decides the archive entry name and compression of every found file
      - collects files that can't be packed (never raised): not on disk,
        outside the root, or sharing an entry with an earlier file

    Returns (plan, missing, issues).
    """
    store = normalize_store_exts(store_extensions)
    plan: List[PackPlanItem] = []
    missing: List[str] = []
    issues: List[ValidationResult] = []
    seen: Dict[str, PackPlanItem] = {}

    for f in scheduled:
        if escapes_root(f.path):
            missing.append(f.path)
            issues.append(
                ValidationResult(
                    "WARNING",
                    "PATH_OUTSIDE_ROOT",
                    f"Refusing to pack a file outside the game folder: {f.path}",
                    f.path,
                )
            )
            continue

        found = locate_file(root, f.path, variant)
        if found is None:
            missing.append(f.path)
            issues.append(
                ValidationResult(
                    "WARNING",
                    "FILE_MISSING",
                    f"File not found on disk: {f.path}",
                    f.path,
                )
            )
            continue

        arcname = relative_name(root, found)

        # Fallback lookups may map two references onto one file; only the first is packed
        key = dependency_key(arcname)
        if key in seen:
            missing.append(f.path)
            issues.append(
                ValidationResult(
                    "WARNING",
                    "ARCNAME_COLLISION",
                    f"Multiple files map to the same archive entry: {arcname}",
                    f.path,
                )
            )
            continue

        item = PackPlanItem(
            src=str(found),
            relpath=f.path,
            arcname=arcname,
            compress=file_ext(arcname) not in store,
        )
        seen[key] = item
        plan.append(item)

    return plan, missing, issues
