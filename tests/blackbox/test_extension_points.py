"""Blackbox extension point ordering and dispatch tests."""

from __future__ import annotations

import pytest

import extpoints
from extpoints import CycleDetected, DispatchFailure


def _order(point_id: str) -> list:
    return extpoints.point(point_id).pluck("id")


def test_ext_001_registration_order_is_deterministic() -> None:
    target = extpoints.point("b001")
    for ext_id, index in (("c", 3), ("a", 1), ("b", 2)):
        target.extend({"id": ext_id, "index": index})
    assert _order("b001") == ["a", "b", "c"]
    target.sort()
    assert _order("b001") == ["a", "b", "c"]


def test_ext_002_first_and_last_sentinels() -> None:
    target = extpoints.point("b002")
    target.extend({"id": "z", "index": "last"}).extend({"id": "n", "index": 0}).extend({"id": "a", "index": "first"})
    assert _order("b002") == ["a", "n", "z"]


def test_ext_003_before_anchor() -> None:
    target = extpoints.point("b003")
    target.extend({"id": "A"}).extend({"id": "B", "before": "A"})
    assert _order("b003") == ["B", "A"]


def test_ext_004_anchor_chain() -> None:
    target = extpoints.point("b004")
    target.extend({"id": "A"}).extend({"id": "B", "before": "A"}).extend({"id": "C", "before": "B"})
    assert _order("b004") == ["C", "B", "A"]


def test_ext_005_orphan_resolved_later() -> None:
    target = extpoints.point("b005")
    target.extend({"id": "B", "after": "A"})
    assert _order("b005") == []
    target.extend({"id": "A"})
    assert _order("b005") == ["A", "B"]


def test_ext_006_cycle_detected() -> None:
    target = extpoints.point("b006")
    with pytest.raises(CycleDetected):
        target.extend({"id": "X", "before": "Y"}).extend({"id": "Y", "before": "X"})


def test_ext_007_duplicate_rejected() -> None:
    target = extpoints.point("b007")
    target.extend({"id": "dup", "value": 1}).extend({"id": "dup", "value": 2})
    assert target.count() == 1
    assert target.pluck("value") == [1]


def test_ext_008_enable_disable() -> None:
    target = extpoints.point("b008")
    target.extend({"id": "a", "index": 1, "run": lambda ctx: "a"}).extend({"id": "b", "index": 2, "run": lambda ctx: "b"})
    target.disable("b")
    assert target.invoke("run", None) == "a"
    assert [extension.id for extension in target.extensions] == ["a", "b"]
    target.enable("b")
    assert target.invoke("run", None) == "b"
    target.disable("*")
    assert target.count() == 0


def test_ext_009_exec_chaining() -> None:
    target = extpoints.point("b009")
    results = []

    def bump(ctx, prev):
        value = (prev or 0) + 1
        results.append(value)
        return value

    for ext_id in ("x", "y", "z"):
        target.extend({"id": ext_id, "bump": bump})
    assert target.exec("bump", None) == 3
    assert results == [1, 2, 3]


def test_ext_010_invoke_best_effort() -> None:
    target = extpoints.point("b010")

    def broken(ctx):
        raise ValueError("boom")

    target.extend({"id": "bad", "index": 1, "run": broken}).extend({"id": "good", "index": 2, "run": lambda ctx: "ok"})
    assert target.invoke("run", None) == "ok"


def test_ext_011_exec_failure_propagates() -> None:
    target = extpoints.point("b011")

    def broken(ctx, prev):
        raise ValueError("boom")

    target.extend({"id": "bad", "run": broken})
    with pytest.raises(DispatchFailure):
        target.exec("run", None)


def test_ext_012_get_reorders() -> None:
    target = extpoints.point("b012")
    target.extend({"id": "a", "index": 1}).extend({"id": "b", "index": 2})
    target.get("a", lambda extension: setattr(extension, "index", "last"))
    assert _order("b012") == ["b", "a"]


def test_ext_013_keys_lists_points() -> None:
    extpoints.point("b013-one")
    extpoints.point("b013-two")
    assert {"b013-one", "b013-two"} <= extpoints.keys()
