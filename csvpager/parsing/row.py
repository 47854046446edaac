# csvpager/parsing/row.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Iterable, Tuple


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Row:
    """
    One parsed record.
    `id` is only a display key (grid rows), it takes no part in equality.
    """

    fields: Tuple[str, ...]
    id: str = field(default_factory=_new_id, compare=False)

    @classmethod
    def of(cls, values: Iterable[str]) -> "Row":
        return cls(fields=tuple(values))

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, idx: int) -> str:
        return self.fields[idx]
