"""JSON-safe rendering of live object graphs returned by SDK calls."""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Iterable, Mapping, Set

CIRCULAR_MARKER = "[Circular]"

# Opaque value wrappers rendered through str().
DEFAULT_STRINGIFY_TYPES = frozenset({"Pubkey", "Signature", "Hash", "Decimal", "UUID", "Fraction"})

# Live handles that have no useful JSON form; rendered as "[TypeName]".
DEFAULT_ELIDE_TYPES = frozenset(
    {
        "AsyncClient",
        "Client",
        "AsyncToken",
        "Token",
        "Keypair",
        "MarinadeApiClient",
        "ClientSession",
        "EventEmitter",
        "AsyncExitStack",
    }
)

_DROP = object()


class _SafeSerializer:
    def __init__(self, stringify_types: Iterable[str], elide_types: Iterable[str]) -> None:
        self.stringify_types = frozenset(stringify_types)
        self.elide_types = frozenset(elide_types)
        self._active: Set[int] = set()

    def visit(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, int, float, str)):
            if isinstance(value, Enum):
                return value.name
            return value
        type_name = type(value).__name__
        if type_name in self.elide_types:
            return f"[{type_name}]"
        if type_name in self.stringify_types:
            return str(value)
        if isinstance(value, Enum):
            return value.name
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).hex()
        if callable(value):
            return _DROP

        identity = id(value)
        if identity in self._active:
            return CIRCULAR_MARKER
        self._active.add(identity)
        try:
            return self._visit_compound(value)
        finally:
            self._active.discard(identity)

    def _visit_compound(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return self._visit_items(value.items())
        if dataclasses.is_dataclass(value):
            return self._visit_items(
                (f.name, getattr(value, f.name)) for f in dataclasses.fields(value)
            )
        if isinstance(value, (list, tuple, set, frozenset)):
            items = (self.visit(item) for item in value)
            return [item for item in items if item is not _DROP]
        if hasattr(value, "__dict__"):
            return self._visit_items(vars(value).items())
        return str(value)

    def _visit_items(self, items: Iterable[tuple]) -> dict:
        result = {}
        for key, item in items:
            rendered = self.visit(item)
            if rendered is not _DROP:
                result[str(key)] = rendered
        return result


def safe_serialize(
    value: Any,
    *,
    stringify_types: Iterable[str] = DEFAULT_STRINGIFY_TYPES,
    elide_types: Iterable[str] = DEFAULT_ELIDE_TYPES,
) -> Any:
    """
    Convert ``value`` into plain JSON-compatible data.

    Containers are walked depth first. A container met again while it is
    still being walked becomes ``"[Circular]"``; types named in
    ``stringify_types`` become ``str(value)``; types named in ``elide_types``
    become ``"[TypeName]"``; callables are dropped.
    """
    rendered = _SafeSerializer(stringify_types, elide_types).visit(value)
    return None if rendered is _DROP else rendered
