"""Dispatch loops for running a method across ordered extensions."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Dict, List, Sequence

from extpoints.exceptions import DispatchFailure
from extpoints.extension import Extension

log = logging.getLogger(__name__)

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.VAR_POSITIONAL,
)


def fan_out(
    point_id: str,
    extensions: Sequence[Extension],
    method_name: str,
    context: Any,
    args: Sequence[Any] = (),
    kwargs: Dict[str, Any] | None = None,
    isolate_failures: bool = True,
) -> Any:
    """
    Call ``method_name`` on every extension, best effort.

    Args:
        point_id: Owning point, used for diagnostics
        extensions: Enabled extensions in resolved order
        method_name: Capability to call on each extension
        context: First argument passed to each capability
        args: Extra positional arguments
        kwargs: Extra keyword arguments
        isolate_failures: Keep going after a failing extension when True,
            stop the remaining fan-out when False

    Returns:
        The result of the last extension that completed, or None
    """
    kwargs = kwargs or {}
    if not extensions:
        log.debug("No extensions to invoke '%s' on for point '%s'", method_name, point_id)
        return None

    log.debug("Invoking '%s' on %d extensions of point '%s'", method_name, len(extensions), point_id)

    result = None
    for extension in extensions:
        try:
            result = extension.invoke(method_name, context, *args, **kwargs)
        except Exception:  # pylint: disable=broad-except
            log.exception(
                "could not invoke '%s' properly on extension '%s' of point '%s'",
                method_name,
                extension.id,
                point_id,
            )
            if not isolate_failures:
                log.error("Stopping fan-out of '%s' on point '%s' after '%s' failed", method_name, point_id, extension.id)
                return None

    return result


def chain(
    point_id: str,
    extensions: Sequence[Extension],
    method_name: str,
    context: Any,
    args: Sequence[Any] = (),
    kwargs: Dict[str, Any] | None = None,
) -> Any:
    """
    Fold ``method_name`` over the extensions, feeding each result forward.

    Every capability is called as ``method(context, prev, *args, **kwargs)``
    where ``prev`` is the previous extension's result (None for the first).

    Raises:
        DispatchFailure: wrapping the first exception raised by an extension
    """
    kwargs = kwargs or {}
    prev = None
    for extension in extensions:
        try:
            prev = extension.invoke(method_name, context, prev, *args, **kwargs)
        except Exception as exc:
            raise DispatchFailure(point_id, extension.id, method_name, str(exc)) from exc
    return prev


def validate_method(extensions: Sequence[Extension], method_name: str) -> Dict[str, Any]:
    """
    Check which extensions implement ``method_name`` and whether they can be dispatched.

    Returns:
        Dictionary containing validation results
    """
    results: Dict[str, Any] = {
        "valid": True,
        "total_extensions": len(extensions),
        "implementing": [],
        "missing": [],
        "invalid": [],
    }

    for extension in extensions:
        if method_name not in extension.fields:
            results["missing"].append(extension.id)
            continue

        method = extension.fields[method_name]
        if not callable(method):
            results["invalid"].append({"id": extension.id, "error": "Capability is not callable"})
            results["valid"] = False
            continue

        try:
            parameters = tuple(inspect.signature(method).parameters.values())
        except (TypeError, ValueError):
            results["implementing"].append({"id": extension.id, "note": "Signature inspection unavailable"})
            continue

        if not any(parameter.kind in _POSITIONAL_KINDS for parameter in parameters):
            results["invalid"].append({"id": extension.id, "error": "Method must accept the context argument"})
            results["valid"] = False
        else:
            results["implementing"].append({"id": extension.id})

    return results


def describe_extensions(extensions: Sequence[Extension], disabled: Sequence[str] = ()) -> List[Dict[str, Any]]:
    """Return one row per extension for listings."""

    blocked = set(disabled)
    return [
        {
            "id": extension.id,
            "index": extension.index,
            "before": extension.before,
            "after": extension.after,
            "enabled": extension.id not in blocked and "*" not in blocked,
        }
        for extension in extensions
    ]
