# csvpager/pipeline/runner.py
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

from csvpager.config.settings import ParserSettings, load_settings
from csvpager.logging.formatter import (
    format_error_section,
    format_footer,
    format_header,
    format_page_line,
)
from csvpager.logging.sink import LogSink
from csvpager.parsing.incremental import IncrementalCsvParser, SessionSnapshot

ProgressCb = Callable[[Dict[str, Any]], None]


def _progress(
    phase: str,
    *,
    rows_done: int,
    bytes_done: int,
    bytes_total: Optional[int],
    elapsed: float,
) -> Dict[str, Any]:
    rps = (rows_done / elapsed) if elapsed > 0 else 0.0
    percent = None
    if bytes_total:
        percent = max(0, min(100, int(bytes_done * 100 / bytes_total)))
    elif phase == "done":
        percent = 100
    return {
        "phase": phase,
        "rows_done": rows_done,
        "bytes_done": bytes_done,
        "bytes_total": bytes_total,
        "elapsed_sec": elapsed,
        "rps": rps,
        "percent": percent,
    }


# --------------------------- main runner ---------------------------
def load_all(
    input_csv: str,
    *,
    settings: Optional[ParserSettings] = None,
    config_yaml: Optional[str] = None,
    log_txt: Optional[str] = None,
    append_log: bool = False,
    progress_cb: Optional[ProgressCb] = None,
    max_pages: Optional[int] = None,
    parser: Optional[IncrementalCsvParser] = None,
) -> SessionSnapshot:
    """
    Drain `input_csv` page by page and return the final session snapshot.

    Stops at end of stream, at the first error (no automatic retry), after
    `max_pages` pages, or when the parser is cancelled. LoadError from
    begin_load propagates. With `append_log` the report is added to the end
    of an existing log file instead of replacing it.
    """
    if settings is None:
        settings = load_settings(config_yaml) if config_yaml else ParserSettings()
    log_path = log_txt if log_txt is not None else (settings.log_path or None)

    own_parser = parser is None
    if parser is None:
        parser = IncrementalCsvParser(settings)

    log: Optional[LogSink] = None
    rows_done = 0
    bytes_done = 0
    pages = 0

    try:
        parser.begin_load(input_csv)
        log = LogSink(log_path, append=append_log) if log_path else None
        start_ts = time.perf_counter()
        bytes_total = parser.source_size

        if log is not None:
            log.write(format_header(
                source=input_csv,
                size_bytes=bytes_total,
                chunk_size=settings.chunk_size,
                encoding=settings.encoding,
                delimiter=settings.delimiter,
                trim_fields=settings.trim_fields,
            ))

        if progress_cb:
            progress_cb(_progress("start", rows_done=0, bytes_done=0, bytes_total=bytes_total, elapsed=0.0))

        # -------------------- page loop --------------------
        while not parser.end_of_stream:
            if max_pages is not None and pages >= max_pages:
                break
            page = parser.load_next_page()
            if page is None:
                # halted, cancelled or closed
                break
            if page.error is not None:
                break

            pages += 1
            rows_done += len(page.rows)
            bytes_done += page.bytes_read
            if log is not None:
                log.write(format_page_line(
                    index=page.index,
                    rows=len(page.rows),
                    bytes_read=page.bytes_read,
                    end_of_stream=page.end_of_stream,
                ))
            if progress_cb:
                progress_cb(_progress(
                    "processing",
                    rows_done=rows_done,
                    bytes_done=bytes_done,
                    bytes_total=bytes_total,
                    elapsed=time.perf_counter() - start_ts,
                ))

        duration = time.perf_counter() - start_ts
        snap = parser.snapshot()

        if progress_cb:
            progress_cb(_progress(
                "done",
                rows_done=len(snap.rows),
                bytes_done=bytes_done,
                bytes_total=bytes_total,
                elapsed=duration,
            ))

        # -------------------- report --------------------
        if log is not None:
            log.write_lines([
                "",
                format_error_section(error=snap.last_error),
                format_footer(
                    rows_total=len(snap.rows),
                    column_count=snap.column_count,
                    pages=snap.pages_loaded,
                    duration_sec=duration,
                    rows_per_sec=(len(snap.rows) / duration) if duration > 0 else None,
                    completed=snap.end_of_stream and snap.last_error is None,
                ),
            ])
        return snap
    finally:
        if log is not None:
            log.close()
        if own_parser:
            parser.close()
