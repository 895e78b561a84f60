"""Extension points: ordered, filterable collections of extensions."""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from extpoints.exceptions import ContractViolation, CycleDetected
from extpoints.executor import chain, describe_extensions, fan_out, validate_method
from extpoints.extension import METADATA_FIELDS, Extension, ExtensionLike, coerce_extension, index_sort_key

log = logging.getLogger(__name__)

WILDCARD = "*"
BEFORE = "before"
AFTER = "after"

_MISSING = object()

OrphanMap = Dict[str, List[Extension]]


class Point:
    """
    A named hook that collects extensions and keeps them in execution order.

    The order is rebuilt from scratch on every structural change: extensions
    without an anchor are sorted by ``index`` (``"first"``, numbers ascending,
    ``"last"``), and anchored extensions are spliced immediately before or
    after their anchor. Anchors whose target is not resolved yet stay parked
    in ``orphans`` and are retried on every later sort.

    Usage:
        point = Registry().point("render")
        point.extend({"id": "body", "render": render_body})
        point.extend({"id": "header", "before": "body", "render": render_header})
        html = point.exec("render", page)
    """

    def __init__(
        self,
        id: Any = "",  # pylint: disable=redefined-builtin
        lock: Optional[threading.RLock] = None,
        isolate_failures: bool = True,
    ) -> None:
        self.id = str(id)
        self.extensions: List[Extension] = []
        self.orphans: Dict[str, OrphanMap] = {BEFORE: {}, AFTER: {}}
        self.disabled: set[str] = set()
        self.isolate_failures = isolate_failures
        self._lock = lock or threading.RLock()

    # ===== Membership =====

    def has(self, id: str) -> bool:  # pylint: disable=redefined-builtin
        """Return True if a resolved extension carries ``id``."""
        return any(extension.id == id for extension in self.extensions)

    def is_pending(self, id: str) -> bool:  # pylint: disable=redefined-builtin
        """Return True if an extension with ``id`` is parked waiting for its anchor."""
        return any(extension.id == id for extension in self.pending())

    def pending(self) -> List[Extension]:
        """Extensions whose anchor has not been resolved yet."""
        with self._lock:
            return [
                extension
                for orphan_map in self.orphans.values()
                for waiting in orphan_map.values()
                for extension in waiting
            ]

    def extend(self, extension: ExtensionLike) -> "Point":
        """
        Register an extension unless one with the same id is already known.

        Args:
            extension: An :class:`Extension` or a mapping of its fields

        Raises:
            ContractViolation: the extension brings its own ``invoke``
            CycleDetected: its anchors close a loop; the point is left unchanged
        """
        try:
            extension = coerce_extension(extension)
        except ContractViolation:
            log.error("Rejected extension for point '%s': %r", self.id, extension)
            raise

        with self._lock:
            if self.has(extension.id) or self.is_pending(extension.id):
                log.debug("Extension '%s' already registered for point '%s', ignoring", extension.id, self.id)
                return self

            self.extensions.append(extension)
            try:
                self.sort()
            except CycleDetected:
                self.extensions.remove(extension)
                raise

        log.debug("Registered extension '%s' for point '%s' with index %r", extension.id, self.id, extension.index)
        return self

    def get(self, id: str, callback: Callable[[Extension], Any]) -> "Point":  # pylint: disable=redefined-builtin
        """
        Pass the extension ``id`` to ``callback`` for in-place changes, then re-sort.

        Unknown ids are ignored.

        Raises:
            CycleDetected: the change closes an anchor loop; the ordering
                metadata of the extension is restored first
        """
        with self._lock:
            extension = next((ext for ext in self.extensions if ext.id == id), None)
            if extension is not None:
                saved = {field: getattr(extension, field) for field in METADATA_FIELDS}
                callback(extension)
                try:
                    self.sort()
                except CycleDetected:
                    for field, value in saved.items():
                        setattr(extension, field, value)
                    raise
        return self

    # ===== Ordering =====

    def sort(self) -> "Point":
        """Rebuild ``extensions`` from the current members and parked orphans."""
        with self._lock:
            basic: List[Extension] = []
            befores: OrphanMap = {anchor: list(waiting) for anchor, waiting in self.orphans[BEFORE].items()}
            afters: OrphanMap = {anchor: list(waiting) for anchor, waiting in self.orphans[AFTER].items()}

            for extension in self.extensions:
                anchor = extension.anchor
                if anchor is None:
                    basic.append(extension)
                    continue
                side, target = anchor
                bucket = befores if side == BEFORE else afters
                bucket.setdefault(target, []).append(extension)

            self._check_anchor_cycles(befores, afters)

            resolved: List[Extension] = []
            expanding: set[str] = set()

            def add_extension(extension: Extension) -> None:
                if extension.id in expanding:
                    raise CycleDetected(self.id, extension.id)
                expanding.add(extension.id)
                for child in sorted(befores.pop(extension.id, []), key=index_sort_key):
                    add_extension(child)
                resolved.append(extension)
                for child in sorted(afters.pop(extension.id, []), key=index_sort_key):
                    add_extension(child)
                expanding.discard(extension.id)

            for extension in sorted(basic, key=index_sort_key):
                add_extension(extension)

            self.extensions = resolved
            self.orphans = {BEFORE: befores, AFTER: afters}

        log.debug("Sorted point '%s': %s", self.id, [extension.id for extension in resolved])
        return self

    def _check_anchor_cycles(self, befores: OrphanMap, afters: OrphanMap) -> None:
        """Follow every anchor chain and fail if one comes back on itself."""
        anchored: Dict[str, Extension] = {
            extension.id: extension
            for orphan_map in (befores, afters)
            for waiting in orphan_map.values()
            for extension in waiting
        }

        for start in anchored.values():
            seen: set[str] = set()
            current: Optional[Extension] = start
            while current is not None:
                if current.id in seen:
                    log.error("Anchor cycle through '%s' on point '%s'", current.id, self.id)
                    raise CycleDetected(self.id, current.id)
                seen.add(current.id)
                anchor = current.anchor
                current = anchored.get(anchor[1]) if anchor else None

    # ===== Enable / disable =====

    def disable(self, id: str) -> "Point":  # pylint: disable=redefined-builtin
        """Hide ``id`` (or every extension with ``"*"``) from iteration and dispatch."""
        with self._lock:
            self.disabled.add(id)
        return self

    def enable(self, id: str) -> None:  # pylint: disable=redefined-builtin
        with self._lock:
            self.disabled.discard(id)

    def is_enabled(self, id: str) -> bool:  # pylint: disable=redefined-builtin
        return id not in self.disabled and WILDCARD not in self.disabled

    isEnabled = is_enabled

    def list(self) -> List[Extension]:
        """Enabled extensions in resolved order, recomputed on every call."""
        with self._lock:
            if WILDCARD in self.disabled:
                return []
            return [extension for extension in self.extensions if extension.id not in self.disabled]

    # ===== Iteration helpers =====

    def each(self, callback: Callable[[Extension], Any]) -> "Point":
        for extension in self.list():
            callback(extension)
        return self

    def map(self, callback: Callable[[Extension], Any]) -> List[Any]:
        return [callback(extension) for extension in self.list()]

    def filter(self, callback: Callable[[Extension], Any]) -> List[Extension]:
        return [extension for extension in self.list() if callback(extension)]

    def reduce(self, callback: Callable[[Any, Extension], Any], memo: Any = _MISSING) -> Any:
        """Fold over enabled extensions; without ``memo`` the first extension seeds the fold."""
        extensions = self.list()
        if memo is _MISSING:
            if not extensions:
                return None
            return functools.reduce(callback, extensions)
        return functools.reduce(callback, extensions, memo)

    def pluck(self, field: str) -> List[Any]:
        return [extension.get(field) for extension in self.list()]

    def count(self) -> int:
        return len(self.list())

    # ===== Dispatch =====

    def invoke(self, name: str, context: Any = None, *args: Any, **kwargs: Any) -> Any:
        """
        Call ``name`` on every enabled extension and return the last result.

        Failures are logged and never reach the caller. With
        ``isolate_failures`` off, the first failure ends the fan-out.
        """
        return fan_out(self.id, self.list(), name, context, args, kwargs, self.isolate_failures)

    def exec(self, method_name: str, context: Any = None, *args: Any, **kwargs: Any) -> Any:
        """
        Pipe ``method_name`` through enabled extensions, each receiving the previous result.

        Raises:
            DispatchFailure: an extension raised; the original is chained as ``__cause__``
        """
        return chain(self.id, self.list(), method_name, context, args, kwargs)

    def validate(self, method_name: str) -> Dict[str, Any]:
        """Report which enabled extensions can be dispatched ``method_name``."""
        return validate_method(self.list(), method_name)

    def describe(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "extensions": describe_extensions(self.extensions, sorted(self.disabled)),
                "pending": [extension.id for extension in self.pending()],
            }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, extensions={[ext.id for ext in self.extensions]!r})"
