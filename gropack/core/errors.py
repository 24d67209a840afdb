from __future__ import annotations

from typing import Optional


class FormatError(ValueError):
    """Structural problem in a scanned file (bad chunk tag, truncated data)."""

    def __init__(self, message: str, offset: Optional[int] = None, filename: Optional[str] = None):
        self.message = message
        self.offset = offset
        self.filename = filename
        super().__init__(self._render())

    def _render(self) -> str:
        text = self.message
        if self.offset is not None:
            text = f"{text} (offset 0x{self.offset:x})"
        if self.filename:
            text = f"{self.filename}: {text}"
        return text

    def with_filename(self, filename: str) -> "FormatError":
        return FormatError(self.message, offset=self.offset, filename=filename)
