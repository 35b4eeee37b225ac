"""Accessor adapters — the capability interface to domain objects.

A form never calls ``getattr``/``setattr`` on a domain object directly.
Each owner object is wrapped in an :class:`Accessor` once, at form
construction, and every read, write, and save goes through it.

INVARIANT: A missing reader is a setup error and fails loudly.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Protocol, runtime_checkable

from twinform.domain.errors import ConfigurationError


@runtime_checkable
class Accessor(Protocol):
    """Late-bound field access by name on one domain object."""

    @property
    def target(self) -> Any:
        """The wrapped domain object."""
        ...

    def get(self, name: str) -> Any:
        """Read *name* from the domain object."""
        ...

    def set(self, name: str, value: Any) -> None:
        """Write *value* to *name* on the domain object."""
        ...

    def save(self) -> bool | None:
        """Persist the domain object.

        Returns ``None`` when the object has no save operation, otherwise
        the save outcome (``False`` means rejected).
        """
        ...


class AttributeAccessor:
    """Adapter for plain objects with reader/writer attributes."""

    def __init__(self, target: Any) -> None:
        self._target = target

    @property
    def target(self) -> Any:
        return self._target

    def get(self, name: str) -> Any:
        try:
            return getattr(self._target, name)
        except AttributeError as exc:
            msg = f"{type(self._target).__name__} has no reader for {name!r}"
            raise ConfigurationError(msg) from exc

    def set(self, name: str, value: Any) -> None:
        try:
            setattr(self._target, name, value)
        except AttributeError as exc:
            msg = f"{type(self._target).__name__} has no writer for {name!r}"
            raise ConfigurationError(msg) from exc

    def save(self) -> bool | None:
        save = getattr(self._target, "save", None)
        if not callable(save):
            return None
        outcome = save()
        return outcome is not False

    def __repr__(self) -> str:
        return f"AttributeAccessor({self._target!r})"


class MappingAccessor:
    """Adapter for dict-like domain objects.

    Missing keys read as ``None``: a mapping exposes every key.
    """

    def __init__(self, target: MutableMapping[str, Any]) -> None:
        self._target = target

    @property
    def target(self) -> MutableMapping[str, Any]:
        return self._target

    def get(self, name: str) -> Any:
        return self._target.get(name)

    def set(self, name: str, value: Any) -> None:
        self._target[name] = value

    def save(self) -> bool | None:
        return None

    def __repr__(self) -> str:
        return f"MappingAccessor({self._target!r})"


def accessor_for(target: Any, accessor_cls: type | None = None) -> Accessor:
    """Wrap *target* in an accessor.

    *accessor_cls* is the adapter chosen by the form class; without one,
    mutable mappings get :class:`MappingAccessor` and everything else
    :class:`AttributeAccessor`. Objects that already implement the
    interface are returned unchanged.
    """
    if target is None:
        msg = "Cannot wrap None: forms need a domain object for every owner"
        raise ConfigurationError(msg)
    if accessor_cls is not None:
        return accessor_cls(target)
    if isinstance(target, (AttributeAccessor, MappingAccessor)):
        return target
    if isinstance(target, MutableMapping):
        return MappingAccessor(target)
    return AttributeAccessor(target)
