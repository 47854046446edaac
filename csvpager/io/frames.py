# csvpager/io/frames.py
from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd

from csvpager.parsing.row import Row


def column_names(width: int) -> List[str]:
    return [str(i + 1) for i in range(width)]


def rows_to_frame(rows: Sequence[Row], width: Optional[int] = None) -> pd.DataFrame:
    """
    Grid view of parsed rows: all cells are strings, short rows are padded
    with "" and the frame is as wide as the widest row (or `width` if larger).
    """
    widest = max((len(r) for r in rows), default=0)
    n = max(widest, width or 0)
    data = [list(r.fields) + [""] * (n - len(r)) for r in rows]
    return pd.DataFrame(data, columns=column_names(n), dtype=str)
