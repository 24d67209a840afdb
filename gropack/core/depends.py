from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set

from gropack.core.filenames import NormalizedPath, dependency_key, normalize_filename
from gropack.core.hashing import hash_text
from gropack.models import ScheduledFile, ValidationResult


class ScanFlags(enum.IntFlag):
    NONE = 0
    REVOLUTION = 1 << 0         # world comes from the alternate engine fork
    PACK_INI = 1 << 1           # include INI configs with their MDL files
    PACK_OGG = 1 << 2           # OGG standard dependencies satisfy MP3 references
    DEPENDENCIES_ONLY = 1 << 3  # list dependencies without packing
    DETECT_GAME = 1 << 4        # ignore archives of an auto-detected game


FLAG_NAMES: Dict[str, ScanFlags] = {
    "ssr": ScanFlags.REVOLUTION,
    "ini": ScanFlags.PACK_INI,
    "ogg": ScanFlags.PACK_OGG,
    "dep": ScanFlags.DEPENDENCIES_ONLY,
    "gro": ScanFlags.DETECT_GAME,
}


def parse_flags(names: Iterable[str]) -> ScanFlags:
    flags = ScanFlags.NONE
    for name in names:
        key = name.strip().lower()
        if key not in FLAG_NAMES:
            raise ValueError(f"Unknown flag: {name!r}")
        flags |= FLAG_NAMES[key]
    return flags


def flag_names(flags: ScanFlags) -> List[str]:
    return [name for name, flag in FLAG_NAMES.items() if flags & flag]


class DependencySet:
    """
    Lowercase filenames that are already satisfied, stored as digests.

    Filled before scanning (ignored files, whole archive indexes) and frozen
    once scanning starts.
    """

    def __init__(self, keys: Iterable[str] = ()):
        self._hashes: Set[bytes] = set()
        self._frozen = False
        for key in keys:
            self.insert(key)

    @staticmethod
    def _hash(key: str) -> bytes:
        return hash_text(dependency_key(key))

    def insert(self, key: str) -> bool:
        if self._frozen:
            raise RuntimeError("Dependency set is read-only once scanning has started")
        h = self._hash(key)
        if h in self._hashes:
            return False
        self._hashes.add(h)
        return True

    def contains(self, key: str) -> bool:
        return self._hash(key) in self._hashes

    __contains__ = contains

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._hashes)


@dataclass
class ScanContext:
    """All mutable state of one run; passed explicitly to every scanner."""

    root: str
    flags: ScanFlags = ScanFlags.NONE
    depends: DependencySet = field(default_factory=DependencySet)
    log_cb: Optional[Callable[[str], None]] = None
    issues: List[ValidationResult] = field(default_factory=list)

    _scheduled: Dict[str, ScheduledFile] = field(default_factory=dict, init=False, repr=False)
    _source_count: int = field(default=0, init=False, repr=False)

    # -------------------------
    # Flags (append-only)
    # -------------------------
    def mark(self, flag: ScanFlags) -> None:
        self.flags |= flag

    def has(self, flag: ScanFlags) -> bool:
        return bool(self.flags & flag)

    @property
    def variant(self) -> bool:
        return self.has(ScanFlags.REVOLUTION)

    def normalize(self, raw) -> NormalizedPath:
        norm = normalize_filename(raw)
        if norm.nonstandard:
            self.mark(ScanFlags.REVOLUTION)
        return norm

    # -------------------------
    # Scheduled files
    # -------------------------
    def begin_source(self) -> None:
        self._source_count = 0

    @property
    def source_count(self) -> int:
        return self._source_count

    def is_scheduled(self, path: str) -> bool:
        return dependency_key(path) in self._scheduled

    def schedule(self, path: str, announce: bool = True) -> bool:
        """Add a file for packing; False when it was already there (any case)."""
        key = dependency_key(path)
        if key in self._scheduled:
            return False
        if not announce:
            # scanned sources themselves are not counted as dependencies
            self._scheduled[key] = ScheduledFile(path=path, ordinal=0)
            return True
        self._source_count += 1
        self._scheduled[key] = ScheduledFile(path=path, ordinal=self._source_count)
        self.log(f"{self._source_count}. {path}")
        return True

    @property
    def scheduled(self) -> List[ScheduledFile]:
        return list(self._scheduled.values())

    def scheduled_paths(self) -> List[str]:
        return [f.path for f in self._scheduled.values()]

    # -------------------------
    # Reporting
    # -------------------------
    def log(self, msg: str) -> None:
        if self.log_cb:
            self.log_cb(msg)

    def add_issue(self, level: str, code: str, message: str, relpath: Optional[str] = None) -> None:
        self.issues.append(ValidationResult(level, code, message, relpath))
