from __future__ import annotations

import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from gropack.core.hashing import hash_file
from gropack.models import PackPlanItem


@dataclass(frozen=True)
class PackSummary:
    total: int
    packed: int
    missing: int


def execute_pack(
    plan: List[PackPlanItem],
    output: str,
    missing: Optional[List[str]] = None,
    progress_cb: Optional[Callable[[int, int, PackPlanItem], None]] = None,
    hash_algo: Optional[str] = "sha1",
) -> Tuple[PackSummary, Dict[str, str]]:
    """
    Writes every plan item into a new zip archive (an existing one is replaced).

    Any error while writing aborts the whole archive and propagates; nothing
    is retried.

    Returns:
      (summary, hashes_by_src)

    hashes_by_src maps source path -> hash digest (used by the manifest).
    """
    missing = missing or []
    hashes_by_src: Dict[str, str] = {}

    out = Path(output)
    out.parent.mkdir(parents=True, exist_ok=True)

    total = len(plan)
    with zipfile.ZipFile(out, "w") as zf:
        for idx, item in enumerate(plan, start=1):
            if progress_cb:
                progress_cb(idx, total, item)

            method = zipfile.ZIP_DEFLATED if item.compress else zipfile.ZIP_STORED
            zf.write(item.src, item.arcname, compress_type=method)

            if hash_algo:
                hashes_by_src[item.src] = hash_file(item.src, algo=hash_algo)  # type: ignore[arg-type]

    summary = PackSummary(total=total + len(missing), packed=total, missing=len(missing))
    return summary, hashes_by_src
