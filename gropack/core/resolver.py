from __future__ import annotations

from typing import Optional

from gropack.core.depends import ScanContext, ScanFlags
from gropack.core.filenames import (
    NormalizedPath,
    dependency_key,
    file_ext,
    locate_file,
    remove_ext,
    replace_spaces,
    replace_variant_dirs,
    substitute_extension,
)
from gropack.core.stream import ChunkStream

MODEL_EXT = ".mdl"
MODEL_CONFIG_EXT = ".ini"
TEXTURE_EXT = ".tex"

# Texture layout: version and six header values (including two chunks)
TEXTURE_HEADER_SIZE = 36
TEXTURE_EFFECT_TAG = b"FXDT"
# Bytes at the start of an effect texture that never belong to the base texture path
TEXTURE_FIXED_BYTES = 56


def _satisfied(ctx: ScanContext, key: str, substitute_audio: bool) -> Optional[str]:
    """
    Run the standard-dependency lookups for a key.

    Returns None when some form of the key is already satisfied, otherwise the
    last key that was tried (its extension decides the expansion).
    """
    if key in ctx.depends:
        return None

    if substitute_audio and ctx.has(ScanFlags.PACK_OGG) and file_ext(key) == ".mp3":
        key = substitute_extension(key, ".ogg")
        if key in ctx.depends:
            return None

    if ctx.variant:
        key = replace_variant_dirs(key)
        if key in ctx.depends:
            return None

        key = replace_spaces(key)
        if key in ctx.depends:
            return None

    return key


def accept(ctx: ScanContext, filename: NormalizedPath, expand: bool = True) -> bool:
    """
    Schedule a normalized filename unless it is a standard dependency.

    Returns True when the file was newly scheduled. Newly scheduled models and
    textures pull in their implied files when expand is set.
    """
    key = _satisfied(ctx, dependency_key(filename), substitute_audio=expand)
    if key is None:
        return False

    if not ctx.schedule(filename.path):
        return False

    if expand:
        expand_extras(ctx, filename.path, file_ext(key))
    return True


def expand_extras(ctx: ScanContext, path: str, ext: str) -> None:
    if ext == MODEL_EXT:
        if ctx.has(ScanFlags.PACK_INI):
            # existence is only checked when packing
            ctx.schedule(remove_ext(path) + MODEL_CONFIG_EXT)

    elif ext == TEXTURE_EXT:
        base = read_base_texture(ctx, path)
        if base:
            accept(ctx, ctx.normalize(base), expand=False)


def read_base_texture(ctx: ScanContext, path: str) -> Optional[str]:
    """Base texture name stored at the end of an effect texture, if any."""
    found = locate_file(ctx.root, path, ctx.variant)
    if found is None:
        return None

    try:
        strm = ChunkStream.from_file(str(found))
    except OSError:
        return None

    return base_texture_name(strm)


def base_texture_name(strm: ChunkStream) -> Optional[str]:
    strm.seek(TEXTURE_HEADER_SIZE)
    if strm.peek(4) != TEXTURE_EFFECT_TAG:
        return None

    # Walk back from the last byte until a NUL, never reaching the fixed bytes
    pos = strm.size - 1
    while pos > TEXTURE_FIXED_BYTES:
        if strm.data[pos] == 0:
            pos += 1
            break
        pos -= 1
    else:
        pos = TEXTURE_FIXED_BYTES + 1

    strm.seek(pos)
    name = strm.read(strm.remaining()).decode("latin-1")
    return name or None
