# csvpager/config/settings.py
from __future__ import annotations

import codecs
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from csvpager.io.reader import DEFAULT_CHUNK_SIZE
from csvpager.parsing.errors import ConfigError
from csvpager.pipeline import registry

ROOT = Path(__file__).resolve().parents[2]
SETTINGS_PATH = ROOT / "configs" / "app_settings.yaml"

# ───────────────────────── defaults ─────────────────────────
DEFAULT_SETTINGS: Dict[str, Any] = {
    "chunk_size": DEFAULT_CHUNK_SIZE,
    "encoding": "utf-8",
    "delimiter": ",",
    "quote_char": '"',
    # trimming is off unless asked for; trim_fields implies clean_field
    "trim_fields": False,
    "field_rules": [],
    # viewer only
    "page_preview_rows": 200,
    # empty = no session report
    "log_path": "",
}


@dataclass(frozen=True)
class ParserSettings:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: str = "utf-8"
    delimiter: str = ","
    quote_char: str = '"'
    trim_fields: bool = False
    field_rules: Tuple[str, ...] = ()
    page_preview_rows: int = 200
    log_path: str = ""

    def __post_init__(self) -> None:
        # accept any iterable of names, store a tuple
        object.__setattr__(self, "field_rules", tuple(self.field_rules))
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError for values the parser cannot work with."""
        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigError("chunk_size must be positive")
        if not isinstance(self.page_preview_rows, int) or self.page_preview_rows <= 0:
            raise ConfigError("page_preview_rows must be positive")

        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError) as e:
            raise ConfigError(f"Unknown encoding '{self.encoding}'") from e
        # lines are cut on the raw newline byte before decoding
        if "\n".encode(self.encoding) != b"\n":
            raise ConfigError(f"Encoding '{self.encoding}' is not ASCII-compatible")

        if not isinstance(self.delimiter, str) or len(self.delimiter) != 1:
            raise ConfigError(f"delimiter must be one character, got {self.delimiter!r}")
        if not isinstance(self.quote_char, str) or len(self.quote_char) != 1:
            raise ConfigError(f"quote_char must be one character, got {self.quote_char!r}")
        if self.delimiter == self.quote_char or "\n" in (self.delimiter, self.quote_char):
            raise ConfigError("delimiter and quote_char must differ and not be a newline")

        for name in self.field_rules:
            if not registry.has(name):
                raise ConfigError(f"Unknown field rule '{name}'")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ParserSettings":
        """Merge `data` over the defaults, coerce types, then validate."""
        merged = {**DEFAULT_SETTINGS, **(data or {})}
        unknown = set(merged) - set(DEFAULT_SETTINGS)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")

        try:
            chunk_size = int(merged["chunk_size"])
            preview = int(merged["page_preview_rows"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Bad numeric setting: {e}") from e

        rules = merged["field_rules"] or []
        if isinstance(rules, str):
            rules = [rules]

        return cls(
            chunk_size=chunk_size,
            encoding=str(merged["encoding"]),
            delimiter=str(merged["delimiter"]),
            quote_char=str(merged["quote_char"]),
            trim_fields=bool(merged["trim_fields"]),
            field_rules=tuple(str(r) for r in rules),
            page_preview_rows=preview,
            log_path=str(merged["log_path"] or ""),
        )

    def effective_rules(self) -> List[str]:
        rules = list(self.field_rules)
        if self.trim_fields and "clean_field" not in rules:
            rules.insert(0, "clean_field")
        return rules

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # YAML safe_dump has no tuple type
        data["field_rules"] = list(self.field_rules)
        return data


def load_settings(path: Union[str, Path, None] = None) -> ParserSettings:
    """Read YAML settings merged over the defaults; a missing file gives defaults."""
    p = Path(path) if path is not None else SETTINGS_PATH
    if not p.exists():
        return ParserSettings.from_dict(None)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse settings file {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {p} must contain a mapping")
    return ParserSettings.from_dict(data)


def save_settings(settings: ParserSettings, path: Union[str, Path, None] = None) -> None:
    p = Path(path) if path is not None else SETTINGS_PATH
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(settings.to_dict(), f, allow_unicode=True, sort_keys=True)
