# app/main.py
from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import streamlit as st

# (optional) wide layout
st.set_page_config(page_title="CSV Pager", layout="wide")

# PYTHONPATH → project root
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from csvpager.config.settings import ParserSettings, load_settings, save_settings  # noqa: E402
from csvpager.io.frames import rows_to_frame  # noqa: E402
from csvpager.parsing.errors import ConfigError, LoadError  # noqa: E402
from csvpager.parsing.incremental import IncrementalCsvParser  # noqa: E402

APP_TITLE = "CSV Pager"
ENCODINGS = ["utf-8", "cp1251", "latin1"]


# ───────────────────────── session ─────────────────────────
def get_parser() -> IncrementalCsvParser | None:
    return st.session_state.get("parser")


def _remove_upload() -> None:
    """Delete the temp copy of an uploaded file once no parser reads it."""
    tmp = st.session_state.pop("upload_tmp", None)
    if tmp and Path(tmp).exists():
        os.remove(tmp)


def open_source(path: str, settings: ParserSettings, *, uploaded: bool = False) -> None:
    """One call per file selection: new parser, new session, first page."""
    old = get_parser()
    if old is not None:
        old.close()
    _remove_upload()
    if uploaded:
        st.session_state["upload_tmp"] = path
    parser = IncrementalCsvParser(settings)
    st.session_state["parser"] = parser
    try:
        parser.begin_load(path)
    except LoadError:
        # last_error already carries the message
        return
    load_more(parser)


def load_more(parser: IncrementalCsvParser) -> None:
    future = parser.start_next_page()
    if future is None:
        return
    with st.spinner("Reading…"):
        future.result()


# ───────────────────────── UI ─────────────────────────
def page_header():
    st.title(APP_TITLE)
    st.caption("Pick a CSV → it is read in chunks → press “Load more” for the next page")


def sidebar_inputs():
    settings = load_settings()

    st.sidebar.header("File")
    mode = st.sidebar.radio("Source", ["Local path", "Upload"], index=0)

    input_path = None
    uploaded_tmp = None
    if mode == "Local path":
        input_path = st.sidebar.text_input("Path to CSV", value="")
    else:
        up = st.sidebar.file_uploader("Upload CSV", type=["csv", "txt"])
        if up is not None:
            tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".csv")
            tmp.write(up.getbuffer())
            tmp.flush()
            tmp.close()
            uploaded_tmp = tmp.name
            input_path = uploaded_tmp

    st.sidebar.divider()
    st.sidebar.header("Reading")
    enc_index = ENCODINGS.index(settings.encoding) if settings.encoding in ENCODINGS else 0
    encoding = st.sidebar.selectbox("Encoding", options=ENCODINGS, index=enc_index)
    chunk_kib = st.sidebar.number_input(
        "Chunk size (KiB)", min_value=4, max_value=64 * 1024, step=256, value=max(4, settings.chunk_size // 1024)
    )
    trim_fields = st.sidebar.checkbox("Trim fields", value=settings.trim_fields)

    try:
        chosen = ParserSettings.from_dict({
            **settings.to_dict(),
            "encoding": encoding,
            "chunk_size": int(chunk_kib) * 1024,
            "trim_fields": bool(trim_fields),
        })
    except ConfigError as e:
        st.sidebar.error(str(e))
        chosen = settings

    if st.sidebar.button("Save settings"):
        save_settings(chosen)
        st.sidebar.success("Saved")

    return input_path, uploaded_tmp, chosen


def show_grid(parser: IncrementalCsvParser, preview_rows: int):
    snap = parser.snapshot()
    if snap.last_error:
        st.error(snap.last_error)

    cols = st.columns(4)
    cols[0].metric("Rows", len(snap.rows))
    cols[1].metric("Columns", snap.column_count)
    cols[2].metric("Pages", snap.pages_loaded)
    cols[3].metric("Status", "done" if snap.end_of_stream else ("loading" if snap.is_loading else "more available"))

    if snap.rows:
        df = rows_to_frame(snap.rows, width=snap.column_count)
        st.dataframe(df, use_container_width=True, height=min(700, 35 * (min(len(df), preview_rows) + 1)))

    can_load = not (snap.end_of_stream or parser.halted or snap.is_loading)
    if st.button("⬇️ Load more", disabled=not can_load, type="primary"):
        load_more(parser)
        st.rerun()


def main():
    page_header()
    input_path, uploaded_tmp, settings = sidebar_inputs()

    if st.button("📂 Open", disabled=not input_path):
        open_source(input_path, settings, uploaded=uploaded_tmp is not None)

    parser = get_parser()
    if parser is None:
        st.info("Choose a CSV file to view it.")
    else:
        show_grid(parser, settings.page_preview_rows)
        # the reader is closed at end of stream or after a decode error
        if parser.end_of_stream or parser.halted:
            _remove_upload()

    # a fresh copy is written on every rerun; drop it unless it was just opened
    if uploaded_tmp and uploaded_tmp != st.session_state.get("upload_tmp") and Path(uploaded_tmp).exists():
        os.remove(uploaded_tmp)


if __name__ == "__main__":
    main()
