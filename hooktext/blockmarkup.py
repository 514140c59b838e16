"""Reader for block-delimited text such as saved replacements, filters and caches.

A block starts at the first delimiter, has one field after each delimiter and
ends with ``|END|``. Text between blocks is ignored.
"""

from __future__ import annotations

import io
from collections.abc import Iterator, Sequence
from typing import Optional, TextIO

END = "|END|"
DEFAULT_BLOCK_SIZE = 0x1000


class BlockMarkupReader:
    """Read delimited blocks from a text stream, one block at a time."""

    def __init__(
        self,
        stream: TextIO,
        delimiters: Sequence[str],
        block_size: int = DEFAULT_BLOCK_SIZE,
    ) -> None:
        if not delimiters:
            raise ValueError("at least one delimiter is required")
        if block_size < 1:
            raise ValueError("block size must be positive")
        self._stream = stream
        self._delimiters = tuple(delimiters)
        self._block_size = block_size
        self._buffer = ""

    def __iter__(self) -> Iterator[tuple[str, ...]]:
        while (block := self.next_block()) is not None:
            yield block

    def next_block(self) -> Optional[tuple[str, ...]]:
        """Return the fields of the next complete block, or None at the end."""
        self._find(self._delimiters[0], discard=True)
        fields = []
        for following in (*self._delimiters[1:], END):
            found = self._find(following, discard=False)
            if found is None:
                return None
            fields.append(found)
        return tuple(fields)

    def _find(self, delimiter: str, discard: bool) -> Optional[str]:
        start = 0
        while True:
            pos = self._buffer.find(delimiter, start)
            if pos >= 0:
                result = None if discard else self._buffer[:pos]
                self._buffer = self._buffer[pos + len(delimiter):]
                return result
            chunk = self._stream.read(self._block_size)
            if not chunk:
                return None
            old_size = len(self._buffer)
            self._buffer += chunk
            start = max(0, old_size - len(delimiter))
            if discard:
                self._buffer = self._buffer[start:]
                start = 0


def parse_blocks(text: str, delimiters: Sequence[str]) -> list[tuple[str, ...]]:
    """Return every complete block found in ``text``."""
    return list(BlockMarkupReader(io.StringIO(text), delimiters))