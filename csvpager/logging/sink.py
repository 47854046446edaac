# csvpager/logging/sink.py
from __future__ import annotations

import io
import os
from typing import Iterable

SESSION_RULE = "=" * 72


class LogSink:
    """
    Line-oriented text report file, flushed after every write.

    With `append=True` earlier reports are kept and each new session starts
    after a separator rule, so one file can collect a history of loads.
    """

    def __init__(self, path: str, *, append: bool = False):
        self.path = path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        has_history = append and os.path.exists(path) and os.path.getsize(path) > 0
        self._fh: io.TextIOWrapper = open(self.path, "a" if append else "w", encoding="utf-8")
        if has_history:
            self.write("")
            self.write(SESSION_RULE)

    def write(self, text: str) -> None:
        self._fh.write(text)
        if not text.endswith("\n"):
            self._fh.write("\n")
        self._fh.flush()

    def write_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.write(line)

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    def __enter__(self) -> "LogSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
