"""Ordered field probes over loosely-shaped backend payloads.

A logical field is resolved by trying each dotted source path in turn; the
first value that coerces cleanly wins, and the documented default is used
only after every path has missed.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable

_MISSING = object()


def lookup(payload: Any, path: str) -> Any:
    """Walk a dotted path through nested dicts. Returns _MISSING on any gap."""
    node = payload
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            return None
        return num if math.isfinite(num) else None
    return None


def as_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def as_list(value: Any) -> list[Any] | None:
    return list(value) if isinstance(value, (list, tuple)) else None


@dataclass(frozen=True)
class FieldProbe:
    paths: tuple[str, ...]
    coerce: Callable[[Any], Any] = as_number
    default: Any = 0.0
    default_factory: Callable[[], Any] | None = field(default=None, compare=False)

    def resolve(self, payload: Any) -> Any:
        for path in self.paths:
            raw = lookup(payload, path)
            if raw is _MISSING or raw is None:
                continue
            value = self.coerce(raw)
            if value is not None:
                return value
        if self.default_factory is not None:
            return self.default_factory()
        return self.default


def resolve_all(table: dict[str, FieldProbe], payload: Any) -> dict[str, Any]:
    return {name: probe.resolve(payload) for name, probe in table.items()}
