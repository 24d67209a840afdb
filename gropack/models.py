from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ValidationResult:
    level: str  # INFO | WARNING | ERROR
    code: str   # stable short identifier (e.g. FILE_MISSING)
    message: str
    relpath: Optional[str] = None  # relative to game root when applicable


@dataclass(frozen=True)
class ScheduledFile:
    path: str     # normalized, original case
    ordinal: int  # reporting only


@dataclass(frozen=True)
class PackPlanItem:
    src: str       # full path on disk
    relpath: str   # scheduled name
    arcname: str   # entry name inside the archive
    compress: bool  # deflate when True, store when False


@dataclass
class PackOptions:
    root: str
    output: str = ""  # relative to root unless absolute
    sources: List[str] = field(default_factory=list)
    store_extensions: List[str] = field(default_factory=list)
    ignore: List[str] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)  # ssr | ini | ogg | dep | gro
