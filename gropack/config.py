from __future__ import annotations

from pathlib import Path

APP_NAME = "GRO Packer"
APP_VERSION = "1.2.0"

HASH_ALGO_DEFAULT = "sha1"

# Music is usually streamed straight from the archive
DEFAULT_STORE_EXTENSIONS = (".ogg", ".mp3")

PROFILES_DIR = Path(__file__).resolve().parent / "profiles"
