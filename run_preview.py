import sys

from csvpager.io.frames import rows_to_frame
from csvpager.pipeline.runner import load_all


def _progress(info: dict) -> None:
    if info["phase"] == "processing":
        pct = info["percent"]
        print(f"  rows: {info['rows_done']}" + (f" ({pct}%)" if pct is not None else ""))


in_csv = sys.argv[1] if len(sys.argv) > 1 else "samples/sample.csv"
snap = load_all(
    in_csv,
    config_yaml="configs/app_settings.yaml",
    log_txt="out/preview_log.txt",
    progress_cb=_progress,
)
if snap.last_error:
    print(f"ERROR: {snap.last_error}")
print(f"rows={len(snap.rows)} columns={snap.column_count} pages={snap.pages_loaded}")
print(rows_to_frame(snap.rows[:20], width=snap.column_count).to_string(index=False))
