# csvpager/io/reader.py
from __future__ import annotations

import os
from typing import BinaryIO, Iterator, Optional

from csvpager.parsing.errors import SourceNotFound, SourceUnreadable

DEFAULT_CHUNK_SIZE = 1_024 * 1_024  # 1 MiB


class ChunkReader:
    """
    Sequential, forward-only reader of raw bytes.
    One owner per handle: no seeking, no concurrent readers.
    """

    def __init__(self, path: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.path = str(path)
        self.chunk_size = int(chunk_size)
        self._bytes_read = 0
        try:
            self._fh: Optional[BinaryIO] = open(self.path, "rb")
        except OSError as e:
            # FileNotFoundError, IsADirectoryError, PermissionError ...
            raise SourceNotFound(self.path, e.strerror or str(e)) from e

    # ── state ────────────────────────────────────────────────────────────────
    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    @property
    def size(self) -> Optional[int]:
        """File size at the time of the call, None when unknown."""
        try:
            return os.path.getsize(self.path)
        except OSError:
            return None

    @property
    def closed(self) -> bool:
        return self._fh is None

    # ── reading ──────────────────────────────────────────────────────────────
    def read_chunk(self, max_bytes: Optional[int] = None) -> bytes:
        """Next up-to-`max_bytes` bytes; b"" once the stream is exhausted."""
        if self._fh is None:
            raise SourceUnreadable(self.path, "reader is closed")
        n = self.chunk_size if max_bytes is None else int(max_bytes)
        if n <= 0:
            raise ValueError("max_bytes must be positive")
        try:
            data = self._fh.read(n)
        except (OSError, ValueError) as e:
            raise SourceUnreadable(self.path, str(e)) from e
        self._bytes_read += len(data)
        return data

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            finally:
                self._fh = None

    def __enter__(self) -> "ChunkReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def iter_chunks(path: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield non-empty raw chunks of `path` until end of file."""
    with ChunkReader(path, chunk_size=chunk_size) as reader:
        while True:
            chunk = reader.read_chunk()
            if not chunk:
                return
            yield chunk
