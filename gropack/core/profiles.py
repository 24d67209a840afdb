from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from gropack.core.depends import FLAG_NAMES, ScanFlags, parse_flags


@dataclass(frozen=True)
class GameProfile:
    name: str
    detect_files: List[str]      # all must exist under the game root
    ignore_archives: List[str]   # standard archives of the game
    flags: List[str] = field(default_factory=list)  # raised when a world path picks the game

    def scan_flags(self) -> ScanFlags:
        return parse_flags(self.flags)


def default_profiles() -> Dict[str, GameProfile]:
    # Detection order matters: later games ship archives of earlier ones
    return {
        "SE1.10": GameProfile(
            name="SE1.10",
            detect_files=["SE1_10.gro"],
            ignore_archives=["SE1_10.gro"],
        ),
        "TSE": GameProfile(
            name="TSE",
            detect_files=["SE1_00.gro"],
            ignore_archives=[
                "SE1_00.gro",
                "SE1_00_Extra.gro",
                "SE1_00_ExtraTools.gro",
                "SE1_00_Music.gro",
                "1_04_patch.gro",
                "1_07_tools.gro",
            ],
        ),
        "Revolution": GameProfile(
            name="Revolution",
            detect_files=["All_01.gro", "All_02.gro"],
            ignore_archives=["All_01.gro", "All_02.gro"],
            flags=["ssr"],
        ),
        "TFE": GameProfile(
            name="TFE",
            detect_files=["1_00c.gro"],
            ignore_archives=[
                "1_00_ExtraTools.gro",
                "1_00_music.gro",
                "1_00c.gro",
                "1_00c_scripts.gro",
                "1_04_patch.gro",
            ],
            flags=["ogg"],
        ),
    }


def profile_path(profiles_dir: str, profile_name: str) -> Path:
    safe = "".join(c for c in profile_name if c.isalnum() or c in ("_", "-", " ", "."))
    return Path(profiles_dir).resolve() / f"{safe}.json"


def to_json_dict(profile: GameProfile) -> Dict[str, Any]:
    return asdict(profile)


def from_json_dict(d: Dict[str, Any]) -> GameProfile:
    def _names(key: str) -> List[str]:
        return [str(x).strip().replace("\\", "/") for x in (d.get(key) or []) if str(x).strip()]

    flags = [str(x).strip().lower() for x in (d.get("flags") or []) if str(x).strip()]
    unknown = [f for f in flags if f not in FLAG_NAMES]
    if unknown:
        raise ValueError(f"Unknown flag(s) in profile: {', '.join(unknown)}")

    return GameProfile(
        name=str(d.get("name") or "Custom"),
        detect_files=_names("detect_files"),
        ignore_archives=_names("ignore_archives"),
        flags=flags,
    )


def ensure_default_profiles_on_disk(profiles_dir: str) -> None:
    pdir = Path(profiles_dir)
    pdir.mkdir(parents=True, exist_ok=True)

    for name, prof in default_profiles().items():
        path = profile_path(profiles_dir, name)
        if not path.exists():
            path.write_text(json.dumps(to_json_dict(prof), indent=2), encoding="utf-8")


def load_profile(profiles_dir: str, name: str) -> GameProfile:
    path = profile_path(profiles_dir, name)
    d = json.loads(path.read_text(encoding="utf-8"))
    return from_json_dict(d)


def load_profiles(profiles_dir: str) -> Dict[str, GameProfile]:
    """Built-in profiles in detection order, overridden by their files on disk."""
    profiles: Dict[str, GameProfile] = {}
    for name, prof in default_profiles().items():
        try:
            profiles[name] = load_profile(profiles_dir, name)
        except (OSError, ValueError):
            profiles[name] = prof
    return profiles


def save_profile(profiles_dir: str, profile: GameProfile) -> Path:
    pdir = Path(profiles_dir)
    pdir.mkdir(parents=True, exist_ok=True)
    path = profile_path(profiles_dir, profile.name)
    path.write_text(json.dumps(to_json_dict(profile), indent=2), encoding="utf-8")
    return path
