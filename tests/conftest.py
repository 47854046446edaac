"""Shared fixtures: CSV files on disk and scripted chunk readers."""

import threading
from pathlib import Path
from typing import Callable, List, Optional, Union

import pytest

from csvpager.parsing.errors import SourceUnreadable


class ScriptedReader:
    """Hands out pre-cut chunks; an Exception in the script is raised instead."""

    def __init__(self, script: List[Union[bytes, Exception]]):
        self.script = list(script)
        self.reads = 0
        self.closed = False

    def read_chunk(self, max_bytes: Optional[int] = None) -> bytes:
        self.reads += 1
        if not self.script:
            return b""
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def size(self) -> Optional[int]:
        return None

    def close(self) -> None:
        self.closed = True


class BlockingReader(ScriptedReader):
    """Blocks every read until `release` is set; `entered` marks a read in progress."""

    def __init__(self, script: List[Union[bytes, Exception]]):
        super().__init__(script)
        self.entered = threading.Event()
        self.release = threading.Event()

    def read_chunk(self, max_bytes: Optional[int] = None) -> bytes:
        self.entered.set()
        assert self.release.wait(timeout=5), "reader was never released"
        return super().read_chunk(max_bytes)


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., str]:
    def _write(content: Union[str, bytes], name: str = "data.csv") -> str:
        path = tmp_path / name
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return str(path)

    return _write


@pytest.fixture
def scripted():
    """scripted(chunks) -> (reader, reader_factory)"""

    def _make(chunks: List[Union[bytes, Exception]], cls=ScriptedReader):
        reader = cls(chunks)

        def factory(path: str, chunk_size: int = 0):
            return reader

        return reader, factory

    return _make


@pytest.fixture
def blocking(scripted):
    def _make(chunks: List[Union[bytes, Exception]]):
        return scripted(chunks, cls=BlockingReader)

    return _make


@pytest.fixture
def unreadable_once():
    return SourceUnreadable("data.csv", "disk on fire")
