from __future__ import annotations

import struct
from typing import Optional

from gropack.core.errors import FormatError

# Longest string accepted where a filename is expected
MAX_STRING_LENGTH = 254

STRING_ENCODING = "latin-1"


class ChunkStream:
    """
    Forward-reading cursor over an in-memory byte buffer.

    Seeking past the end is allowed; reads there return nothing and
    at_end() reports True. Only structural checks (expect, truncated
    strings) raise FormatError.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0
        self.size = len(data)

    @classmethod
    def from_file(cls, path: str) -> "ChunkStream":
        with open(path, "rb") as f:
            return cls(f.read())

    def tell(self) -> int:
        return self.pos

    def at_end(self) -> bool:
        return self.pos >= self.size

    def remaining(self) -> int:
        return max(self.size - self.pos, 0)

    def seek(self, pos: int) -> None:
        if pos < 0:
            raise FormatError(f"Seek to negative position {pos}", offset=self.pos)
        self.pos = pos

    def skip(self, n: int) -> None:
        self.seek(self.pos + n)

    def peek(self, n: int) -> bytes:
        return self.data[self.pos:self.pos + n]

    def read(self, n: int) -> bytes:
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def expect(self, tag: bytes) -> None:
        start = self.pos
        found = self.read(len(tag))
        if found != tag:
            raise FormatError(
                f"Expected chunk {tag.decode('ascii', 'replace')!r}, found {found!r}",
                offset=start,
            )

    def read_int32(self) -> int:
        if self.remaining() < 4:
            raise FormatError("Unexpected end of stream reading int32", offset=self.pos)
        val = struct.unpack_from("<i", self.data, self.pos)[0]
        self.pos += 4
        return val

    def peek_int32(self, offset: int = 0) -> Optional[int]:
        at = self.pos + offset
        if at < 0 or at + 4 > self.size:
            return None
        return struct.unpack_from("<i", self.data, at)[0]

    def read_string(self, max_length: Optional[int] = MAX_STRING_LENGTH) -> Optional[str]:
        """
        Length-prefixed string: int32 length, then that many bytes.

        Returns None (cursor just past the length) when the length is negative
        or not below max_length. A length running past the buffer is a
        FormatError.
        """
        start = self.pos
        length = self.read_int32()
        if length < 0 or (max_length is not None and length >= max_length):
            return None
        if length > self.remaining():
            raise FormatError(f"Truncated string of {length} byte(s)", offset=start)
        return self.read(length).decode(STRING_ENCODING)

    def read_cstring(self, limit: Optional[int] = None, terminators: bytes = b"\x00") -> str:
        """Bytes up to a terminator, end of stream or limit; a terminator is consumed."""
        end = self.size if limit is None else min(self.size, self.pos + limit)
        stop = self.pos
        while stop < end and self.data[stop] not in terminators:
            stop += 1
        text = self.data[self.pos:stop].decode(STRING_ENCODING)
        self.pos = stop
        if stop < self.size and self.data[stop] in terminators:
            self.pos += 1
        return text
