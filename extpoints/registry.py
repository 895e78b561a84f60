"""Registry primitives for creating and looking up extension points."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, Set

from extpoints.exceptions import ContractViolation
from extpoints.extension import METADATA_FIELDS, RESERVED_FIELD, Extension, IndexLike
from extpoints.points import Point

log = logging.getLogger(__name__)


class Registry:
    """
    Mapping from point id to :class:`Point`.

    Points are created lazily on first access and live as long as the
    registry. All points of one registry share its lock, so mutations and
    sorts never interleave across threads.
    """

    def __init__(self, isolate_failures: bool = True) -> None:
        self._points: Dict[str, Point] = {}
        self._lock = threading.RLock()
        self.isolate_failures = isolate_failures

    def point(self, id: Any = "") -> Point:  # pylint: disable=redefined-builtin
        """Return the point for ``id``, creating it on first use."""
        point_id = str(id)
        with self._lock:
            existing = self._points.get(point_id)
            if existing is not None:
                return existing
            created = Point(point_id, lock=self._lock, isolate_failures=self.isolate_failures)
            self._points[point_id] = created
        log.debug("Created extension point '%s'", point_id)
        return created

    def keys(self) -> Set[str]:
        with self._lock:
            return set(self._points)

    def set_isolation(self, isolate_failures: bool) -> None:
        """Change failure isolation for existing and future points."""
        with self._lock:
            self.isolate_failures = isolate_failures
            for existing in self._points.values():
                existing.isolate_failures = isolate_failures

    def describe(self) -> Dict[str, Dict[str, Any]]:
        """
        List every point with its resolved extensions and parked orphans.

        Returns:
            Dictionary keyed by point id
        """
        with self._lock:
            return {point_id: entry.describe() for point_id, entry in self._points.items()}

    def __contains__(self, id: object) -> bool:  # pylint: disable=redefined-builtin
        return str(id) in self._points

    def __len__(self) -> int:
        return len(self._points)


_default_registry = Registry()


def get_default_registry() -> Registry:
    """Registry used by the module-level helpers and :func:`extends`."""
    return _default_registry


def reset_default_registry() -> Registry:
    """
    Replace the default registry with an empty one (for testing only).

    Example:
        def teardown_function():
            reset_default_registry()
    """
    global _default_registry  # pylint: disable=global-statement
    _default_registry = Registry()
    return _default_registry


# Convenience functions for the default registry
def point(id: Any = "") -> Point:  # pylint: disable=redefined-builtin
    """Get or create a point on the default registry."""
    return _default_registry.point(id)


def keys() -> Set[str]:
    """Ids of all points on the default registry."""
    return _default_registry.keys()


def extends(
    point_id: str,
    method: str,
    *,
    id: Optional[str] = None,  # pylint: disable=redefined-builtin
    index: Optional[IndexLike] = None,
    before: Optional[str] = None,
    after: Optional[str] = None,
    registry: Optional[Registry] = None,
):
    """
    Decorator for contributing a function as an extension.

    Args:
        point_id: Point to extend
        method: Capability name the function is registered under
        id: Extension id, defaults to the function name
        index: Ordering key (number, "first" or "last")
        before: Id to run immediately before
        after: Id to run immediately after
        registry: Target registry, defaults to the default registry
    """
    if method in METADATA_FIELDS or method == RESERVED_FIELD:
        raise ContractViolation(f"Capability name '{method}' is reserved for extension metadata", id)

    def decorator(func: Callable[..., Any]):
        target = registry if registry is not None else _default_registry
        extension = Extension(
            id=id or func.__name__,
            index=index,
            before=before,
            after=after,
            **{method: func},
        )
        target.point(point_id).extend(extension)
        return func

    return decorator
