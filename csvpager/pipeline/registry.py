# csvpager/pipeline/registry.py
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from csvpager.rules.fields import (
    clean_field,
    sanitize_invisible,
    strip_quotes,
    strip_whitespace,
    to_lower,
)

FieldRule = Callable[[str], str]

_RULES: Dict[str, FieldRule] = {
    "strip_whitespace": strip_whitespace,
    "sanitize_invisible": sanitize_invisible,
    "to_lower": to_lower,
    "strip_quotes": strip_quotes,
    "clean_field": clean_field,
}


def names() -> List[str]:
    return sorted(_RULES)


def has(name: str) -> bool:
    return name in _RULES


def get(name: str) -> FieldRule:
    if name in _RULES:
        return _RULES[name]
    raise KeyError(f"Unknown rule '{name}'")


def build_chain(rule_names: Iterable[str]) -> Optional[FieldRule]:
    """Compose the named rules left to right; None when the list is empty."""
    fns = [get(n) for n in rule_names]
    if not fns:
        return None

    def _chain(value: str) -> str:
        for fn in fns:
            value = fn(value)
        return value

    return _chain
