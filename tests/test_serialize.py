import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from solders.pubkey import Pubkey

from marinade_mcp.tools.serialize import CIRCULAR_MARKER, safe_serialize


class EventEmitter:
    def emit(self, *_args):
        pass


class Status(Enum):
    ACTIVE = 1


class Node:
    def __init__(self, name: str) -> None:
        self.name = name
        self.parent = None
        self.children = []
        self.on_change = lambda: None


@dataclass
class Holder:
    mint: Pubkey
    price: Decimal
    status: Status
    raw: bytes
    emitter: Any = field(default_factory=EventEmitter)
    again: Any = None


def test_self_reference_becomes_circular_marker():
    state = {"name": "marinade"}
    state["self"] = state
    rendered = safe_serialize(state)
    assert rendered == {"name": "marinade", "self": CIRCULAR_MARKER}
    json.dumps(rendered)


def test_parent_child_cycle_terminates():
    root = Node("root")
    child = Node("child")
    child.parent = root
    root.children.append(child)
    rendered = safe_serialize(root)
    assert rendered["children"][0]["name"] == "child"
    assert rendered["children"][0]["parent"] == CIRCULAR_MARKER
    assert "on_change" not in rendered
    assert len(json.dumps(rendered)) < 500


def test_shared_reference_outside_cycle_is_rendered_twice():
    shared = {"value": 1}
    rendered = safe_serialize({"a": shared, "b": shared})
    assert rendered == {"a": {"value": 1}, "b": {"value": 1}}


def test_wrappers_stringified_and_internals_elided():
    mint = Pubkey.default()
    holder = Holder(mint=mint, price=Decimal("1.25"), status=Status.ACTIVE, raw=b"\x01\x02")
    holder.again = holder
    rendered = safe_serialize(holder)
    assert rendered == {
        "mint": str(mint),
        "price": "1.25",
        "status": "ACTIVE",
        "raw": "0102",
        "emitter": "[EventEmitter]",
        "again": CIRCULAR_MARKER,
    }


def test_custom_type_sets():
    rendered = safe_serialize(
        {"node": Node("x"), "price": Decimal("2")},
        stringify_types=set(),
        elide_types={"Node"},
    )
    assert rendered["node"] == "[Node]"
    assert rendered["price"] == "2"
