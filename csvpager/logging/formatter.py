# csvpager/logging/formatter.py
from __future__ import annotations

from datetime import datetime
from typing import Optional


def _fmt_bytes(n: Optional[int]) -> str:
    if n is None:
        return "unknown"
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KiB"
    return f"{n / (1024 * 1024):.1f} MiB"


def format_header(
    *,
    source: str,
    size_bytes: Optional[int],
    chunk_size: int,
    encoding: str,
    delimiter: str = ",",
    trim_fields: bool = False,
) -> str:
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        "========== CSV LOAD REPORT ==========",
        f"Date/time: {ts}",
        f"Source: {source}",
        f"Size: {_fmt_bytes(size_bytes)}",
        f"Chunk size: {_fmt_bytes(chunk_size)}",
        f"Encoding: {encoding}",
        f"Delimiter: {delimiter!r}",
        f"Field trimming: {'ON' if trim_fields else 'OFF'}",
        "=====================================",
        "",
    ]
    return "\n".join(lines)


def format_page_line(*, index: int, rows: int, bytes_read: int, end_of_stream: bool = False) -> str:
    tail = " (end of stream)" if end_of_stream else ""
    return f"page {index}: {rows} rows, {_fmt_bytes(bytes_read)}{tail}"


def format_error_section(*, error: Optional[str]) -> str:
    lines = ["================ ERRORS ==============="]
    lines.append(error if error else "(none)")
    lines.append("")
    return "\n".join(lines)


def format_footer(
    *,
    rows_total: int,
    column_count: int,
    pages: int,
    duration_sec: Optional[float] = None,
    rows_per_sec: Optional[float] = None,
    completed: bool = True,
) -> str:
    lines = [
        "================ SUMMARY ==============",
        f"Rows: {rows_total}",
        f"Columns (first row): {column_count}",
        f"Pages: {pages}",
        f"Status: {'complete' if completed else 'incomplete'}",
    ]
    if duration_sec is not None:
        lines.append(f"Duration: {duration_sec:.2f} sec")
    if rows_per_sec is not None:
        lines.append(f"Speed: {rows_per_sec:.2f} rows/sec")
    lines += ["============ END OF REPORT ============", ""]
    return "\n".join(lines)
