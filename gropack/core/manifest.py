from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from gropack.models import PackPlanItem, ScheduledFile, ValidationResult


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _safe_stat(path: str) -> Dict[str, Any]:
    try:
        st = os.stat(path)
        return {
            "size_bytes": int(st.st_size),
            "mtime": datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat(timespec="seconds"),
        }
    except OSError:
        return {"size_bytes": None, "mtime": None}


def build_manifest_dict(
    tool_name: str,
    tool_version: str,
    root: str,
    output: Optional[str],
    flags: List[str],
    standard_dependencies: int,
    scheduled: List[ScheduledFile],
    plan: List[PackPlanItem],
    missing: List[str],
    validation_results: List[ValidationResult],
    hashes_by_src: Optional[Dict[str, str]] = None,
    hash_algo: str = "sha1",
    include_file_stats: bool = True,
) -> Dict[str, Any]:
    hashes_by_src = hashes_by_src or {}
    by_relpath = {item.relpath: item for item in plan}

    files_out: List[Dict[str, Any]] = []
    for f in scheduled:
        entry: Dict[str, Any] = {
            "ordinal": f.ordinal,
            "path": f.path,
        }
        item = by_relpath.get(f.path)
        if item is None:
            entry["found"] = False
        else:
            entry.update(
                {
                    "found": True,
                    "src": item.src,
                    "arcname": item.arcname,
                    "compression": "deflate" if item.compress else "store",
                }
            )
            if include_file_stats:
                entry.update(_safe_stat(item.src))
            h = hashes_by_src.get(item.src)
            if h:
                entry[hash_algo] = h
        files_out.append(entry)

    results_out = [
        {
            "level": r.level,
            "code": r.code,
            "message": r.message,
            "relpath": r.relpath,
        }
        for r in validation_results
    ]

    manifest = {
        "tool": tool_name,
        "version": tool_version,
        "timestamp_utc": _utc_now_iso(),
        "root": root,
        "output": output,
        "flags": list(flags),
        "standard_dependencies": standard_dependencies,
        "results": results_out,
        "files": files_out,
        "missing": list(missing),
    }
    return manifest


def write_manifest_json(
    manifest: Dict[str, Any],
    manifest_path: str,
) -> str:
    path = Path(manifest_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)

    return str(path)
