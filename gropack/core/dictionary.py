from __future__ import annotations

from gropack.core.depends import ScanContext, ScanFlags
from gropack.core.errors import FormatError
from gropack.core.filenames import locate_file, remove_ext
from gropack.core.resolver import accept
from gropack.core.stream import ChunkStream

TAG_BUILD_VERSION = b"BUIV"
TAG_WORLD = b"WRLD"
TAG_WORLD_INFO = b"WLIF"
TAG_TRANSLATION = b"DTRS"
TAG_LEADERBOARDS = b"LDRB"
TAG_PLAYER_LEVEL = b"Plv0"
TAG_SPECIAL_MODE = b"SpGM"

TAG_DICT_POS = b"DPOS"
TAG_DICT = b"DICT"
TAG_DICT_FILENAME = b"DFNM"
TAG_DICT_END = b"DEND"

# Data following the Plv0 tag
PLAYER_LEVEL_DATA_SIZE = 12


def verify_world(strm: ChunkStream) -> None:
    """Check the build version and world chunks."""
    if strm.read(4) != TAG_BUILD_VERSION:
        raise FormatError("Not a world file (missing build version)", offset=0)
    strm.read_int32()
    if strm.read(4) != TAG_WORLD:
        raise FormatError("Not a world file (missing world chunk)", offset=strm.tell() - 4)


def skip_world_info(ctx: ScanContext, strm: ChunkStream) -> None:
    """Skip world metadata up to the end of the world description."""
    strm.expect(TAG_WORLD_INFO)

    if strm.peek(4) == TAG_TRANSLATION:
        strm.skip(4)

    if strm.peek(4) == TAG_LEADERBOARDS:
        strm.skip(4)
        strm.read_string(max_length=None)
        ctx.mark(ScanFlags.REVOLUTION)

    if strm.peek(4) == TAG_PLAYER_LEVEL:
        strm.skip(4 + PLAYER_LEVEL_DATA_SIZE)
        ctx.mark(ScanFlags.REVOLUTION)

    # World name and spawn flags
    strm.read_string(max_length=None)
    strm.skip(4)

    if strm.peek(4) == TAG_SPECIAL_MODE:
        strm.skip(4)
        ctx.mark(ScanFlags.REVOLUTION)

    # World description
    strm.read_string(max_length=None)


def scan_dictionary(ctx: ScanContext, strm: ChunkStream) -> int:
    """
    Read one DICT ... DEND block at the cursor and accept every filename.
    Returns the number of records.
    """
    strm.expect(TAG_DICT)
    count = strm.read_int32()

    for _ in range(count):
        strm.expect(TAG_DICT_FILENAME)
        start = strm.tell()
        raw = strm.read_string()
        if raw is None:
            raise FormatError("Corrupt filename record in dictionary", offset=start)

        if raw == "":
            continue

        accept(ctx, ctx.normalize(raw))

    strm.expect(TAG_DICT_END)
    return count


def schedule_world_extras(ctx: ScanContext, world: str) -> None:
    """Thumbnail and visibility files live next to the world under fixed names."""
    stem = remove_ext(world)

    thumbnail = stem + "Tbn.tex"
    if locate_file(ctx.root, thumbnail) is None:
        thumbnail = stem + ".tbn"
    if locate_file(ctx.root, thumbnail) is not None:
        ctx.schedule(thumbnail)

    vis = stem + ".vis"
    if locate_file(ctx.root, vis) is not None:
        ctx.schedule(vis)


def _seek_dictionary(strm: ChunkStream) -> None:
    offset = strm.read_int32()
    strm.seek(offset)


def scan_world_stream(ctx: ScanContext, strm: ChunkStream, world: str) -> None:
    verify_world(strm)
    skip_world_info(ctx, strm)

    ctx.begin_source()
    schedule_world_extras(ctx, world)

    # The first dictionary position follows the brush and entity data
    while not strm.at_end():
        if strm.peek(4) == TAG_DICT_POS:
            strm.skip(4)
            break
        strm.skip(1)
    else:
        raise FormatError("Dictionary position not found", offset=strm.tell())

    # Brush textures
    _seek_dictionary(strm)
    scan_dictionary(ctx, strm)

    # Entity resources
    strm.expect(TAG_DICT_POS)
    _seek_dictionary(strm)
    scan_dictionary(ctx, strm)

    if ctx.source_count == 0:
        ctx.log("No dependencies")


def scan_world(ctx: ScanContext, world: str) -> None:
    """
    Scan a root-relative world file for dependencies.

    Raises FormatError (with the world name) when the file is not a valid
    world and OSError when it can't be read.
    """
    path = locate_file(ctx.root, world, ctx.variant)
    if path is None:
        raise FileNotFoundError(f"World file not found: {world}")

    strm = ChunkStream.from_file(str(path))
    try:
        scan_world_stream(ctx, strm, world)
    except FormatError as e:
        raise e.with_filename(world) from None
