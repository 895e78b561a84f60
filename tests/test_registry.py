"""Behavioural tests for registries, the default registry and the decorator."""

from __future__ import annotations

import threading

import pytest

import extpoints
from extpoints import ContractViolation, Registry, extends
from extpoints.registry import get_default_registry, reset_default_registry


def test_point_is_created_once() -> None:
    """Repeated lookups return the same point."""
    registry = Registry()
    first = registry.point("render")
    assert registry.point("render") is first
    assert registry.keys() == {"render"}
    assert "render" in registry
    assert len(registry) == 1


def test_point_default_id_is_empty_string() -> None:
    """The unnamed global point has id ''."""
    registry = Registry()
    assert registry.point().id == ""
    assert registry.point("") is registry.point()


def test_point_id_coercion_shares_point() -> None:
    """Ids are coerced to strings before lookup."""
    registry = Registry()
    assert registry.point(1) is registry.point("1")
    assert registry.keys() == {"1"}


def test_points_share_the_registry_lock() -> None:
    """All points of a registry serialise on one lock."""
    registry = Registry()
    # pylint: disable=protected-access
    assert registry.point("a")._lock is registry.point("b")._lock


def test_registries_are_independent() -> None:
    """Explicit registries do not see each other's points."""
    left, right = Registry(), Registry()
    left.point("shared").extend({"id": "x"})
    assert right.point("shared").count() == 0


def test_set_isolation_updates_existing_and_new_points() -> None:
    """Isolation changes apply to points created before and after."""
    registry = Registry()
    before = registry.point("before")
    registry.set_isolation(False)
    assert before.isolate_failures is False
    assert registry.point("after").isolate_failures is False


def test_describe_covers_every_point() -> None:
    """describe is keyed by point id."""
    registry = Registry()
    registry.point("a").extend({"id": "one"})
    registry.point("b")
    description = registry.describe()
    assert set(description) == {"a", "b"}
    assert description["a"]["extensions"][0]["id"] == "one"
    assert description["b"] == {"extensions": [], "pending": []}


def test_module_helpers_use_default_registry() -> None:
    """point() and keys() at package level act on the default registry."""
    created = extpoints.point("hooks")
    assert get_default_registry().point("hooks") is created
    assert "hooks" in extpoints.keys()


def test_reset_default_registry_drops_points() -> None:
    """Resetting gives a fresh, empty default registry."""
    extpoints.point("temp")
    fresh = reset_default_registry()
    assert fresh is get_default_registry()
    assert extpoints.keys() == set()


def test_extends_decorator_registers_function() -> None:
    """The decorator contributes the function under the given capability."""

    @extends("startup", "run", index="first")
    def warm_cache(context):
        return f"warm:{context}"

    @extends("startup", "run", id="late")
    def finish(context):
        return f"done:{context}"

    target = extpoints.point("startup")
    assert [extension.id for extension in target.extensions] == ["warm_cache", "late"]
    assert target.invoke("run", "app") == "done:app"
    assert warm_cache("x") == "warm:x"


def test_extends_decorator_with_explicit_registry() -> None:
    """An empty explicit registry is still honoured."""
    registry = Registry()

    @extends("p", "run", registry=registry)
    def handler(context):
        return context

    assert registry.point("p").has("handler")
    assert "p" not in extpoints.keys()


def test_extends_decorator_rejects_invoke_capability() -> None:
    """Registering under the reserved name fails at decoration time."""
    with pytest.raises(ContractViolation):

        @extends("p", "invoke")
        def handler(context):  # pragma: no cover - never registered
            return context


@pytest.mark.parametrize("method", ["id", "index", "before", "after"])
def test_extends_decorator_rejects_metadata_names(method: str) -> None:
    """Capability names clashing with ordering metadata are refused up front."""
    with pytest.raises(ContractViolation):
        extends("p", method)
    assert "p" not in extpoints.keys()


def test_contains_coerces_ids() -> None:
    """Membership checks use the same string coercion as point()."""
    registry = Registry()
    registry.point(7)
    assert 7 in registry
    assert "7" in registry
    assert 8 not in registry


def test_concurrent_extend_keeps_every_extension() -> None:
    """Parallel registrations on one point all land exactly once."""
    registry = Registry()
    target = registry.point("parallel")

    def register(offset: int) -> None:
        for number in range(50):
            target.extend({"id": f"{offset}-{number}", "index": number})

    threads = [threading.Thread(target=register, args=(offset,)) for offset in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert target.count() == 200
    indices = target.pluck("index")
    assert indices == sorted(indices)
