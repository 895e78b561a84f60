"""Extension records contributed to extension points."""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from extpoints.exceptions import ContractViolation

FIRST = "first"
LAST = "last"

DEFAULT_ID = "default"
DEFAULT_ID_INDEX = 100
UNORDERED_INDEX = 1000000000

RESERVED_FIELD = "invoke"
METADATA_FIELDS = ("id", "index", "before", "after")

IndexLike = Union[int, float, str]


def _validate_index(value: Any, extension_id: Optional[str]) -> IndexLike:
    """Return ``value`` if it is a usable ordering key, raise otherwise."""

    if value in (FIRST, LAST):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise ContractViolation(
            f"Extension index must be a number, '{FIRST}' or '{LAST}', got {value!r}",
            extension_id,
        )
    return value


def index_sort_key(extension: "Extension") -> Tuple[int, float]:
    """Sort key placing ``first`` before numbers and ``last`` after them.

    Used with :func:`sorted`, which is stable, so equal keys keep their
    registration order.
    """

    if extension.index == FIRST:
        return (0, 0)
    if extension.index == LAST:
        return (2, 0)
    return (1, extension.index)


class Extension:
    """A contributed unit of behaviour: ordering metadata plus named capabilities.

    Capabilities are arbitrary keyword fields. Callable ones are dispatch
    targets for :meth:`try_invoke`; anything else is plain data reachable
    through item access, attribute access or ``Point.pluck``.

    ``invoke`` is reserved for the dispatch adapter and may not be supplied.
    """

    def __init__(
        self,
        id: Optional[str] = None,  # pylint: disable=redefined-builtin
        index: Optional[IndexLike] = None,
        before: Optional[str] = None,
        after: Optional[str] = None,
        **fields: Any,
    ) -> None:
        if RESERVED_FIELD in fields:
            raise ContractViolation("Extensions must not have their own invoke method", id or DEFAULT_ID)

        object.__setattr__(self, "fields", dict(fields))
        if not id:
            id = DEFAULT_ID
            if index is None:
                index = DEFAULT_ID_INDEX
        elif index is None:
            index = UNORDERED_INDEX

        object.__setattr__(self, "id", str(id))
        self.index = index
        object.__setattr__(self, "before", str(before) if before else None)
        object.__setattr__(self, "after", str(after) if after else None)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Extension":
        """Build an extension from a plain mapping of fields."""

        data = dict(mapping)
        if RESERVED_FIELD in data:
            raise ContractViolation(
                "Extensions must not have their own invoke method", data.get("id") or DEFAULT_ID
            )
        return cls(**data)

    @property
    def index(self) -> IndexLike:
        return self._index

    @index.setter
    def index(self, value: IndexLike) -> None:
        object.__setattr__(self, "_index", _validate_index(value, self.__dict__.get("id")))

    @property
    def anchor(self) -> Optional[Tuple[str, str]]:
        """``("before", id)`` or ``("after", id)``; ``before`` wins when both are set."""

        if self.before:
            return ("before", self.before)
        if self.after:
            return ("after", self.after)
        return None

    def try_invoke(self, method_name: str, context: Any, *args: Any, **kwargs: Any) -> Any:
        """Call the capability ``method_name`` with ``context`` first.

        Returns ``None`` when the extension has no such callable capability.
        """

        method = self.fields.get(method_name)
        if not callable(method):
            return None
        return method(context, *args, **kwargs)

    invoke = try_invoke

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self[name]
        except KeyError:
            return default

    def to_mapping(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "index": self.index, "before": self.before, "after": self.after}
        data.update(self.fields)
        return data

    def __getitem__(self, name: str) -> Any:
        if name in METADATA_FIELDS:
            return getattr(self, name)
        if name == RESERVED_FIELD:
            return self.invoke
        return self.fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        setattr(self, name, value)

    def __contains__(self, name: object) -> bool:
        return name in METADATA_FIELDS or name in self.fields

    def __getattr__(self, name: str) -> Any:
        fields = self.__dict__.get("fields")
        if fields is not None and name in fields:
            return fields[name]
        raise AttributeError(f"{type(self).__name__!s} has no field '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "index":
            object.__setattr__(self, name, value)
        elif name in ("before", "after"):
            object.__setattr__(self, name, str(value) if value else None)
        elif name == "id":
            object.__setattr__(self, name, str(value) if value else DEFAULT_ID)
        elif name == RESERVED_FIELD:
            raise ContractViolation("Extensions must not have their own invoke method", self.id)
        else:
            self.fields[name] = value

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.id!r}, index={self.index!r}, "
            f"before={self.before!r}, after={self.after!r})"
        )


ExtensionLike = Union[Extension, Mapping[str, Any]]


def coerce_extension(extension: ExtensionLike) -> Extension:
    """Accept either an :class:`Extension` or a mapping of fields."""

    if isinstance(extension, Extension):
        if type(extension).invoke is not Extension.invoke:
            raise ContractViolation("Extensions must not have their own invoke method", extension.id)
        return extension
    if isinstance(extension, Mapping):
        return Extension.from_mapping(extension)
    raise ContractViolation(f"Unsupported extension type: {type(extension).__name__}")

