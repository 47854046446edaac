# csvpager/parsing/incremental.py
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple

from csvpager.config.settings import ParserSettings
from csvpager.io.reader import ChunkReader
from csvpager.parsing.errors import DecodeError, LoadError, SourceNotFound, SourceUnreadable
from csvpager.parsing.row import Row
from csvpager.parsing.splitter import LineSplitter
from csvpager.pipeline import registry

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# What a consumer sees
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Page:
    """Outcome of one read-and-parse cycle."""

    index: int
    rows: Tuple[Row, ...]
    end_of_stream: bool = False
    error: Optional[str] = None
    bytes_read: int = 0


@dataclass(frozen=True)
class SessionSnapshot:
    source: Optional[str]
    rows: Tuple[Row, ...]
    column_count: int
    is_loading: bool
    last_error: Optional[str]
    end_of_stream: bool
    pages_loaded: int
    bytes_read: int


class PageSource(Protocol):
    def load_next_page(self) -> Optional[Page]: ...


class TextParser(Protocol):
    def parse_csv(self, content: str) -> List[Row]: ...


Subscriber = Callable[[SessionSnapshot], None]
ReaderFactory = Callable[..., ChunkReader]


@dataclass(frozen=True)
class _Claim:
    generation: int
    reader: ChunkReader
    leftover: bytes
    consumed: int
    index: int


# ──────────────────────────────────────────────────────────────────────────────
# Parser
# ──────────────────────────────────────────────────────────────────────────────
class IncrementalCsvParser:
    """
    Turns a file into rows page by page without holding the file in memory.

    - Bytes after the last newline seen so far are kept as leftover and
      prefixed to the next chunk; the final line is parsed at end of stream.
    - `load_next_page()` is single-flight: it returns None at once when a page
      is in flight, the stream is exhausted, paging was halted by a decode
      error, or cancellation was requested.
    - Consumer-visible state is published under one lock, a page at a time.
    """

    def __init__(
        self,
        settings: Optional[ParserSettings] = None,
        *,
        reader_factory: ReaderFactory = ChunkReader,
    ):
        self.settings = settings or ParserSettings()
        self._splitter = LineSplitter(
            delimiter=self.settings.delimiter,
            quote_char=self.settings.quote_char,
            field_rule=registry.build_chain(self.settings.effective_rules()),
        )
        self._reader_factory = reader_factory
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._subscribers: List[Subscriber] = []
        self._generation = 0
        self._reset(None)

    def _reset(self, source: Optional[str]) -> None:
        self._source = source
        self._reader: Optional[ChunkReader] = None
        self._leftover = b""
        self._consumed = 0
        self._rows: List[Row] = []
        self._rows_cache: Optional[Tuple[Row, ...]] = ()
        self._end_of_stream = False
        self._loading = False
        self._halted = False
        self._last_error: Optional[str] = None
        self._pages = 0
        self._bytes_read = 0

    # ── read-only state ───────────────────────────────────────────────────────
    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def rows(self) -> Tuple[Row, ...]:
        with self._lock:
            return self._rows_view()

    def _rows_view(self) -> Tuple[Row, ...]:
        # rebuilt at most once per published page
        if self._rows_cache is None:
            self._rows_cache = tuple(self._rows)
        return self._rows_cache

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def end_of_stream(self) -> bool:
        return self._end_of_stream

    @property
    def halted(self) -> bool:
        return self._halted

    @property
    def column_count(self) -> int:
        # first row only; later rows may be wider or narrower
        with self._lock:
            return len(self._rows[0]) if self._rows else 0

    @property
    def source_size(self) -> Optional[int]:
        reader = self._reader
        return reader.size if reader is not None else None

    @property
    def pages_loaded(self) -> int:
        return self._pages

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            source=self._source,
            rows=self._rows_view(),
            column_count=len(self._rows[0]) if self._rows else 0,
            is_loading=self._loading,
            last_error=self._last_error,
            end_of_stream=self._end_of_stream,
            pages_loaded=self._pages,
            bytes_read=self._bytes_read,
        )

    # ── observers ─────────────────────────────────────────────────────────────
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback(snapshot)` after every published change."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
            if not subscribers:
                return
            snap = self._snapshot_locked()
        for cb in subscribers:
            # the change is already published at this point
            try:
                cb(snap)
            except Exception:
                logger.exception("Subscriber %r failed", cb)

    # ── parsing capability ────────────────────────────────────────────────────
    def parse_csv(self, content: str) -> List[Row]:
        return self._splitter.parse_csv(content)

    # ── session ───────────────────────────────────────────────────────────────
    def begin_load(self, source: str) -> None:
        """Start a new session on `source`; raises LoadError if it cannot be opened."""
        path = str(source)
        self._cancel.clear()
        with self._lock:
            previous = self._reader
            # results of a page still in flight for the old session are dropped
            self._generation += 1
            self._reset(path)
        if previous is not None:
            previous.close()

        try:
            reader = self._reader_factory(path, chunk_size=self.settings.chunk_size)
        except (SourceNotFound, SourceUnreadable, OSError, ValueError) as e:
            err = LoadError(str(e))
            with self._lock:
                self._last_error = str(err)
            self._notify()
            raise err from e

        with self._lock:
            self._reader = reader
        self._notify()

    def load_next_page(self) -> Optional[Page]:
        """Read and parse one chunk in the calling thread."""
        claim = self._claim()
        if claim is None:
            return None
        return self._run_page(claim)

    def start_next_page(self) -> Optional["Future[Optional[Page]]"]:
        """Same as load_next_page, but the read runs on the background worker."""
        claim = self._claim()
        if claim is None:
            return None
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="csvpager")
        return self._executor.submit(self._run_page, claim)

    def cancel(self) -> None:
        """Stop paging before the next chunk read; the current page still completes."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def close(self) -> None:
        self.cancel()
        with self._lock:
            reader, self._reader = self._reader, None
        if reader is not None:
            reader.close()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "IncrementalCsvParser":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ── one page ──────────────────────────────────────────────────────────────
    def _claim(self) -> Optional[_Claim]:
        with self._lock:
            if (
                self._reader is None
                or self._loading
                or self._end_of_stream
                or self._halted
                or self._cancel.is_set()
            ):
                return None
            self._loading = True
            claim = _Claim(
                generation=self._generation,
                reader=self._reader,
                leftover=self._leftover,
                consumed=self._consumed,
                index=self._pages,
            )
        self._notify()
        return claim

    def _run_page(self, claim: _Claim) -> Optional[Page]:
        try:
            if self._cancel.is_set():
                self._release(claim)
                return None
            return self._read_and_parse(claim)
        except BaseException:
            self._release(claim)
            raise

    def _read_and_parse(self, claim: _Claim) -> Page:
        try:
            chunk = claim.reader.read_chunk()
        except SourceUnreadable as e:
            # leftover stays as it was, so calling again is a clean retry
            return self._publish(claim, Page(index=claim.index, rows=(), error=str(e)))

        if not chunk:
            # end of stream: whatever is left is the last line of the file
            try:
                text = self._decode(claim.leftover, claim.consumed)
            except DecodeError as e:
                return self._publish(claim, Page(index=claim.index, rows=(), error=str(e)), halt=True)
            rows = tuple(self._splitter.parse_lines(text.split("\n"))) if text else ()
            page = Page(index=claim.index, rows=rows, end_of_stream=True)
            return self._publish(claim, page, leftover=b"", consumed=claim.consumed + len(claim.leftover))

        data = claim.leftover + chunk
        cut = data.rfind(b"\n")
        if cut == -1:
            # no complete line yet (one long record spanning chunks)
            page = Page(index=claim.index, rows=(), bytes_read=len(chunk))
            return self._publish(claim, page, leftover=data, consumed=claim.consumed)

        try:
            text = self._decode(data[:cut], claim.consumed)
        except DecodeError as e:
            page = Page(index=claim.index, rows=(), error=str(e), bytes_read=len(chunk))
            return self._publish(claim, page, halt=True)

        rows = tuple(self._splitter.parse_lines(text.split("\n")))
        page = Page(index=claim.index, rows=rows, bytes_read=len(chunk))
        return self._publish(claim, page, leftover=data[cut + 1:], consumed=claim.consumed + cut + 1)

    def _decode(self, data: bytes, offset: int) -> str:
        try:
            return data.decode(self.settings.encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(self.settings.encoding, offset + e.start, e.reason) from e

    # ── publication ───────────────────────────────────────────────────────────
    def _publish(
        self,
        claim: _Claim,
        page: Page,
        *,
        leftover: Optional[bytes] = None,
        consumed: Optional[int] = None,
        halt: bool = False,
    ) -> Page:
        with self._lock:
            if claim.generation != self._generation:
                return page
            if page.rows:
                self._rows.extend(page.rows)
                self._rows_cache = None
            if leftover is not None:
                self._leftover = leftover
            if consumed is not None:
                self._consumed = consumed
            self._bytes_read += page.bytes_read
            if page.error is None:
                self._pages += 1
            else:
                self._last_error = page.error
            if page.end_of_stream:
                self._end_of_stream = True
            if halt:
                self._halted = True
            self._loading = False
            finished = self._end_of_stream or self._halted
            reader = self._reader if finished else None
            if finished:
                self._reader = None
        if reader is not None:
            reader.close()
        self._notify()
        return page

    def _release(self, claim: _Claim) -> None:
        with self._lock:
            if claim.generation != self._generation:
                return
            self._loading = False
        self._notify()
