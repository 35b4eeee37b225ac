"""Coercion table — converts raw input to declared field types.

Coercion runs during deserialization only, never when a form reads its
domain object. Converters are backed by pydantic ``TypeAdapter`` in lax
mode, so ``"42"`` becomes ``42`` and ``"yes"`` becomes ``True``.

INVARIANT: A failed conversion is returned as a message, never raised.
The deserializer turns that message into a validation error.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import TypeAdapter, ValidationError

from twinform.domain.errors import ConfigurationError

Converter = Callable[[Any], Any]


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def adapter_converter(target: Any) -> Converter:
    """Build a converter that validates through a pydantic ``TypeAdapter``."""
    adapter: TypeAdapter[Any] = TypeAdapter(target)

    def convert(value: Any) -> Any:
        return adapter.validate_python(value)

    convert.__name__ = f"coerce_{getattr(target, '__name__', str(target))}"
    return convert


# Populated by _register_builtins() at module load time.
COERCION_REGISTRY: dict[str, Converter] = {}

# Specs whose target is text; blank strings are kept as-is for these.
_TEXTUAL: frozenset[Any] = frozenset({str, "str", "strip"})


def register_coercer(name: str, converter: Converter) -> None:
    """Register *converter* under *name* in the global registry.

    Raises:
        TypeError: If *converter* is not callable.
        ValueError: If *name* is already bound to a different converter.
    """
    if not callable(converter):
        msg = f"Coercer {name!r} must be callable, got {type(converter).__name__}"
        raise TypeError(msg)
    existing = COERCION_REGISTRY.get(name)
    if existing is not None and existing is not converter:
        msg = f"Coercer already registered: {name!r}"
        raise ValueError(msg)
    COERCION_REGISTRY[name] = converter


def _register_builtins() -> None:
    for name, target in (
        ("int", int),
        ("float", float),
        ("bool", bool),
        ("str", str),
        ("decimal", Decimal),
        ("date", date),
        ("datetime", datetime),
    ):
        register_coercer(name, adapter_converter(target))
    register_coercer("strip", _strip)


_register_builtins()


class CoercionTable:
    """Resolves coercion specs to converters and applies them.

    A spec is a registered name (``"int"``), a type (``int``, ``Decimal``,
    ``list[int]``) or any callable taking the raw value. Types are wrapped
    in a cached ``TypeAdapter`` converter on first use.

    Args:
        converters: Name → converter overrides layered on top of the
            global registry.
        blank_as_none: Convert blank strings to ``None`` for non-text
            targets before converting.
    """

    def __init__(
        self,
        converters: Mapping[str, Converter] | None = None,
        *,
        blank_as_none: bool = True,
    ) -> None:
        self._named: dict[str, Converter] = dict(converters or {})
        self._blank_as_none = blank_as_none
        self._by_type: dict[Any, Converter] = {}

    def resolve(self, spec: Any) -> Converter:
        """Return the converter for *spec*.

        Raises:
            ConfigurationError: If *spec* names an unknown coercion.
        """
        if isinstance(spec, str):
            converter = self._named.get(spec) or COERCION_REGISTRY.get(spec)
            if converter is None:
                msg = f"Unknown coercion: {spec!r}"
                raise ConfigurationError(msg)
            return converter
        if isinstance(spec, type) or hasattr(spec, "__origin__"):
            cached = self._by_type.get(spec)
            if cached is None:
                cached = adapter_converter(spec)
                self._by_type[spec] = cached
            return cached
        if callable(spec):
            return spec
        msg = f"Invalid coercion spec: {spec!r}"
        raise ConfigurationError(msg)

    def coerce(self, spec: Any, value: Any) -> tuple[Any, str | None]:
        """Convert *value* according to *spec*.

        Returns:
            A ``(value, error)`` tuple. On failure the raw value is returned
            unchanged together with a human-readable message.
        """
        converter = self.resolve(spec)
        if value is None:
            return None, None
        if (
            self._blank_as_none
            and isinstance(value, str)
            and not value.strip()
            and spec not in _TEXTUAL
        ):
            return None, None
        try:
            return converter(value), None
        except ValidationError as exc:
            details = exc.errors()
            message = str(details[0]["msg"]) if details else str(exc)
            return value, message
        except Exception as exc:
            return value, str(exc) or "could not be coerced"
