from __future__ import annotations

from pathlib import Path
from typing import List

from gropack.core.depends import FLAG_NAMES
from gropack.core.filenames import normalize_filename
from gropack.models import PackOptions, ValidationResult


def validate_options(options: PackOptions) -> List[ValidationResult]:
    results: List[ValidationResult] = []
    flags = [f.strip().lower() for f in options.flags if f.strip()]

    # -------------------------
    # Rule: Known flags
    # -------------------------
    for f in flags:
        if f not in FLAG_NAMES:
            results.append(
                ValidationResult(
                    level="ERROR",
                    code="UNKNOWN_FLAG",
                    message=f"Unknown flag '{f}' (expected one of: {', '.join(FLAG_NAMES)})",
                    relpath=None,
                )
            )

    # -------------------------
    # Rule: Game root
    # -------------------------
    root_ok = False
    if not options.root.strip():
        results.append(
            ValidationResult(
                level="ERROR",
                code="ROOT_MISSING",
                message="Game folder path has not been set.",
                relpath=None,
            )
        )
    elif not Path(options.root).is_dir():
        results.append(
            ValidationResult(
                level="ERROR",
                code="ROOT_NOT_DIR",
                message=f"Game folder is not a directory: {options.root}",
                relpath=None,
            )
        )
    else:
        root_ok = True

    # -------------------------
    # Rule: Output archive (not needed when only listing)
    # -------------------------
    if "dep" not in flags and not options.output.strip():
        results.append(
            ValidationResult(
                level="ERROR",
                code="OUTPUT_MISSING",
                message="Output GRO file has not been set.",
                relpath=None,
            )
        )

    # -------------------------
    # Rule: Sources exist
    # -------------------------
    if not options.sources:
        results.append(
            ValidationResult(
                level="ERROR",
                code="SOURCES_MISSING",
                message="No files to scan.",
                relpath=None,
            )
        )
    elif root_ok:
        for src in options.sources:
            if not (Path(options.root) / normalize_filename(src).path).is_file():
                results.append(
                    ValidationResult(
                        level="ERROR",
                        code="SOURCE_NOT_FOUND",
                        message=f"File to scan does not exist: {src}",
                        relpath=src,
                    )
                )

    # -------------------------
    # Rule: Store rules are plain extensions
    # -------------------------
    for ext in options.store_extensions:
        e = ext.strip()
        if not e or any(c in e for c in "/\\*?") or e.strip(".") == "":
            results.append(
                ValidationResult(
                    level="ERROR",
                    code="STORE_EXT_INVALID",
                    message=f"Not a file extension: '{ext}'",
                    relpath=None,
                )
            )

    return results
