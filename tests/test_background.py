"""
Tests for background paging: the single-flight gate, atomic publication and
subscriptions.
"""

import threading

import pytest

from csvpager.parsing.errors import LoadError
from csvpager.parsing.incremental import IncrementalCsvParser, SessionSnapshot


def test_second_request_while_in_flight_is_a_no_op(blocking):
    reader, factory = blocking([b"a,b\nc,d\n"])
    parser = IncrementalCsvParser(reader_factory=factory)
    parser.begin_load("data.csv")

    future = parser.start_next_page()
    assert future is not None
    assert reader.entered.wait(timeout=5)

    assert parser.is_loading
    assert parser.load_next_page() is None
    assert parser.start_next_page() is None

    reader.release.set()
    page = future.result(timeout=5)

    assert reader.reads == 1
    assert [r.fields for r in page.rows] == [("a", "b"), ("c", "d")]
    assert [r.fields for r in parser.rows] == [("a", "b"), ("c", "d")]
    assert parser.is_loading is False
    parser.close()


def test_page_is_published_at_once(blocking):
    reader, factory = blocking([b"1\n2\n3\n"])
    parser = IncrementalCsvParser(reader_factory=factory)
    parser.begin_load("data.csv")

    future = parser.start_next_page()
    assert reader.entered.wait(timeout=5)
    assert parser.rows == ()

    reader.release.set()
    future.result(timeout=5)
    assert len(parser.rows) == 3
    parser.close()


def test_many_threads_racing_for_one_page(scripted):
    reader, factory = scripted([b"x\n"])
    parser = IncrementalCsvParser(reader_factory=factory)
    parser.begin_load("data.csv")

    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(parser.load_next_page())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    while not parser.end_of_stream:
        parser.load_next_page()

    assert [r.fields for r in parser.rows] == [("x",)]
    assert reader.reads == 2


def test_subscribers_see_loading_then_result(write_csv):
    parser = IncrementalCsvParser()
    seen = []
    unsubscribe = parser.subscribe(seen.append)

    parser.begin_load(write_csv("a,b\n"))
    parser.load_next_page()

    assert all(isinstance(s, SessionSnapshot) for s in seen)
    assert any(s.is_loading for s in seen)
    last = seen[-1]
    assert last.is_loading is False
    assert [r.fields for r in last.rows] == [("a", "b")]
    assert last.column_count == 2

    count = len(seen)
    unsubscribe()
    parser.load_next_page()
    assert len(seen) == count


def test_subscriber_sees_load_error():
    parser = IncrementalCsvParser()
    seen = []
    parser.subscribe(seen.append)
    with pytest.raises(LoadError):
        parser.begin_load("/no/such/file")
    assert seen[-1].last_error is not None
    assert seen[-1].rows == ()


def test_results_of_an_abandoned_session_are_dropped(blocking, scripted):
    old, _ = blocking([b"old\n"])
    new, _ = scripted([b"new\n"])
    readers = iter([old, new])
    parser = IncrementalCsvParser(reader_factory=lambda path, chunk_size=0: next(readers))

    parser.begin_load("data.csv")
    future = parser.start_next_page()
    assert old.entered.wait(timeout=5)

    # new session while the old page is still being read
    parser.begin_load("other.csv")
    assert old.closed

    old.release.set()
    future.result(timeout=5)
    assert parser.rows == ()
    assert parser.is_loading is False

    parser.load_next_page()
    assert [r.fields for r in parser.rows] == [("new",)]
    parser.close()


def test_failing_subscriber_does_not_fail_the_page(write_csv, caplog):
    parser = IncrementalCsvParser()
    seen = []

    def broken(snap):
        raise RuntimeError("observer blew up")

    parser.subscribe(broken)
    parser.subscribe(seen.append)
    parser.begin_load(write_csv("a\nb\n"))

    page = parser.load_next_page()
    assert [r.fields for r in page.rows] == [("a",), ("b",)]
    assert [r.fields for r in parser.rows] == [("a",), ("b",)]
    assert parser.is_loading is False
    assert seen[-1].is_loading is False
    assert any(rec.exc_info and "observer blew up" in str(rec.exc_info[1]) for rec in caplog.records)


def test_row_tuple_is_shared_until_the_next_page(scripted):
    _, factory = scripted([b"a\n", b"b\n"])
    parser = IncrementalCsvParser(reader_factory=factory)
    parser.begin_load("data.csv")

    parser.load_next_page()
    first = parser.rows
    assert parser.snapshot().rows is first

    parser.load_next_page()
    assert parser.rows is not first
    assert [r.fields for r in parser.rows] == [("a",), ("b",)]
