# csvpager/parsing/splitter.py
from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional

from csvpager.parsing.row import Row


def _field_pattern(delimiter: str, quote_char: str) -> "re.Pattern[str]":
    d = re.escape(delimiter)
    q = re.escape(quote_char)
    # a field starts at line start or right after a delimiter and ends right
    # before a delimiter or line end; the quoted form wins when it closes cleanly
    return re.compile(rf"(?:^|(?<={d}))(?:{q}([^{q}]*){q}|([^{d}]*))(?={d}|$)")


class LineSplitter:
    """
    Quote-aware splitting of one logical line into fields.

    Tolerant by construction: a quote that does not close right before a
    delimiter (or line end) makes the field fall back to its raw text, so
    unbalanced quotes never fail the line.
    """

    def __init__(
        self,
        delimiter: str = ",",
        quote_char: str = '"',
        field_rule: Optional[Callable[[str], str]] = None,
    ):
        if len(delimiter) != 1 or len(quote_char) != 1:
            raise ValueError("delimiter and quote_char must be single characters")
        if delimiter == quote_char:
            raise ValueError("delimiter and quote_char must differ")
        self.delimiter = delimiter
        self.quote_char = quote_char
        self.field_rule = field_rule
        self._re = _field_pattern(delimiter, quote_char)

    def split(self, line: str) -> List[str]:
        fields: List[str] = []
        for m in self._re.finditer(line):
            quoted, raw = m.group(1), m.group(2)
            fields.append(quoted if quoted is not None else raw)
        if self.field_rule is not None:
            fields = [self.field_rule(f) for f in fields]
        return fields

    def parse_line(self, line: str) -> Optional[Row]:
        if line.endswith("\r"):
            line = line[:-1]
        if line == "":
            return None
        fields = self.split(line)
        if not fields:
            return None
        return Row.of(fields)

    def parse_lines(self, lines: Iterable[str]) -> List[Row]:
        rows: List[Row] = []
        for line in lines:
            row = self.parse_line(line)
            if row is not None:
                rows.append(row)
        return rows

    def parse_csv(self, content: str) -> List[Row]:
        """Parse every line of `content`, the last one included."""
        return self.parse_lines(content.split("\n"))


DEFAULT_SPLITTER = LineSplitter()


def split_line(line: str) -> List[str]:
    return DEFAULT_SPLITTER.split(line)


def parse_csv(content: str) -> List[Row]:
    return DEFAULT_SPLITTER.parse_csv(content)
