from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from gropack.core.depends import ScanContext
from gropack.core.filenames import file_ext, locate_file
from gropack.core.resolver import accept
from gropack.core.stream import MAX_STRING_LENGTH, ChunkStream

EXECUTABLE_EXTS = {".exe", ".dll"}

_TEXT_TERMINATORS = b"\n\r\x00"


@dataclass(frozen=True)
class MarkerSet:
    """
    Tags that introduce an embedded filename.

    binary:     tag, int32 length, bytes
    executable: tag, bytes up to NUL
    text:       tag, one space, bytes up to a line break or NUL
    The engine writes the binary and text forms with the same tag.
    """

    binary: bytes = b"TFNM"
    executable: bytes = b"EFNM"
    text: bytes = b"TFNM"


DEFAULT_MARKERS = MarkerSet()


def _read_binary(strm: ChunkStream) -> Optional[str]:
    size = strm.peek_int32()
    if size is None or size < 0 or size >= MAX_STRING_LENGTH:
        return None
    if size > strm.remaining() - 4:
        return None
    return strm.read_string()


def _read_executable(strm: ChunkStream) -> Optional[str]:
    return strm.read_cstring()


def _read_text(strm: ChunkStream) -> Optional[str]:
    if strm.peek(1) != b" ":
        return None
    strm.skip(1)
    return strm.read_cstring(limit=MAX_STRING_LENGTH, terminators=_TEXT_TERMINATORS)


def scan_buffer(
    ctx: ScanContext,
    strm: ChunkStream,
    markers: MarkerSet = DEFAULT_MARKERS,
) -> List[str]:
    """
    Brute-force search for embedded filenames from the cursor to the end.

    At every byte each marker family is tried in turn; when none yields a name
    the search moves on by a single byte. Worst case is one attempt per byte of
    input. Returns the extracted (raw) names.
    """
    readers: List[Tuple[bytes, Callable[[ChunkStream], Optional[str]]]] = [
        (markers.binary, _read_binary),
        (markers.executable, _read_executable),
        (markers.text, _read_text),
    ]
    found: List[str] = []

    while strm.remaining() >= 4:
        start = strm.tell()
        tag = strm.peek(4)
        name = None

        for marker, reader in readers:
            if tag != marker:
                continue
            strm.seek(start + 4)
            name = reader(strm)
            if name:
                break
            name = None

        if name is None:
            strm.seek(start + 1)
            continue

        found.append(name)
        accept(ctx, ctx.normalize(name))

    return found


def executable_scan_start(data: bytes) -> int:
    """
    Raw data offset of the second section of a PE image.

    The first section holds code, which never contains filenames. Returns 0
    when the image can't be parsed.
    """
    try:
        if data[:2] != b"MZ":
            return 0
        e_lfanew = struct.unpack_from("<I", data, 0x3C)[0]
        if data[e_lfanew:e_lfanew + 4] != b"PE\0\0":
            return 0
        number_of_sections = struct.unpack_from("<H", data, e_lfanew + 6)[0]
        optional_header_size = struct.unpack_from("<H", data, e_lfanew + 20)[0]
        if number_of_sections < 2:
            return 0
        section_offset = e_lfanew + 24 + optional_header_size
        raw_address = struct.unpack_from("<I", data, section_offset + 40 + 20)[0]
    except struct.error:
        return 0

    if raw_address >= len(data):
        return 0
    return raw_address


def scan_generic_stream(
    ctx: ScanContext,
    strm: ChunkStream,
    name: str,
    markers: MarkerSet = DEFAULT_MARKERS,
) -> List[str]:
    if file_ext(name) in EXECUTABLE_EXTS:
        strm.seek(executable_scan_start(strm.data))

    ctx.begin_source()
    found = scan_buffer(ctx, strm, markers)

    if ctx.source_count == 0:
        ctx.log("No dependencies")
    return found


def scan_generic(ctx: ScanContext, name: str, markers: MarkerSet = DEFAULT_MARKERS) -> List[str]:
    path = locate_file(ctx.root, name, ctx.variant)
    if path is None:
        raise FileNotFoundError(f"File not found: {name}")

    strm = ChunkStream.from_file(str(path))
    return scan_generic_stream(ctx, strm, name, markers)
