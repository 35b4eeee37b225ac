"""Field definitions and the per-form Schema.

A :class:`Schema` is built once per form class when the class is created.
Every pipeline stage (read, deserialize, validate, sync, save) walks the
same Schema, so the form shape is fixed at definition time.

Visibility flags:

- ``readable``: value is read from the domain object at construction.
- ``writable``: value is written back by the synchronizer.
- ``virtual``: neither readable nor writable; lives only on the form.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from twinform.domain.errors import ConfigurationError
from twinform.domain.rules import FieldRule, FormRule, is_blank

SkipPredicate = Callable[[Any, Any], bool]


def all_blank(fragment: Any, form: Any) -> bool:
    """True when *fragment* (or every value inside a mapping) is blank."""
    if isinstance(fragment, Mapping):
        return all(all_blank(value, form) for value in fragment.values())
    return is_blank(fragment)


SKIP_PREDICATES: dict[str, SkipPredicate] = {
    "all_blank": all_blank,
}


def resolve_skip_if(spec: str | SkipPredicate | None) -> SkipPredicate | None:
    """Resolve a named or callable skip predicate.

    Raises:
        ConfigurationError: If *spec* names an unknown predicate.
    """
    if spec is None or callable(spec):
        return spec
    predicate = SKIP_PREDICATES.get(spec)
    if predicate is None:
        msg = f"Unknown skip_if predicate: {spec!r}"
        raise ConfigurationError(msg)
    return predicate


@dataclass(frozen=True)
class FieldDefinition:
    """Declaration of one form field.

    Attributes:
        name: Field name on the form and key in input documents.
        source: Accessor name on the domain object (renaming support).
        readable: Read from the domain object at construction.
        writable: Written back to the domain object on sync.
        virtual: Form-only field.
        coerce: Coercion spec applied during deserialization.
        skip_if: Predicate ``(fragment, form) -> bool``; a true result
            leaves the field untouched. Applied per entry for collections.
        default: Value (or zero-arg callable) used when the field is not
            read or the domain object returns ``None``.
        on: Owner key for composed forms.
        form: Nested form class, or ``None`` for scalar fields.
        collection: Nested field holds a list of forms.
        populate_if_empty: Factory for domain objects backing nested forms
            created from input.
        save: Nested domain objects are saved by the persister.
        validators: Field rules.
    """

    name: str
    source: str
    readable: bool = True
    writable: bool = True
    virtual: bool = False
    coerce: Any = None
    skip_if: SkipPredicate | None = None
    default: Any = None
    on: str | None = None
    form: type | None = None
    collection: bool = False
    populate_if_empty: Callable[[], Any] | None = None
    save: bool = True
    validators: tuple[FieldRule, ...] = ()

    def __post_init__(self) -> None:
        if self.virtual and (self.readable or self.writable):
            msg = f"Field {self.name!r}: virtual fields cannot be readable or writable"
            raise ConfigurationError(msg)
        if self.collection and self.form is None:
            msg = f"Field {self.name!r}: collections require a nested form"
            raise ConfigurationError(msg)
        if self.form is not None and self.coerce is not None:
            msg = f"Field {self.name!r}: nested forms cannot declare a coercion"
            raise ConfigurationError(msg)

    @property
    def nested(self) -> bool:
        return self.form is not None

    @property
    def syncable(self) -> bool:
        return self.writable and not self.virtual

    def default_value(self) -> Any:
        if self.collection:
            return []
        if callable(self.default):
            return self.default()
        return self.default


@dataclass(frozen=True)
class Schema:
    """Ordered field definitions, form rules, and composition owners."""

    fields: tuple[FieldDefinition, ...] = ()
    rules: tuple[FormRule, ...] = ()
    composition: tuple[str, ...] = ()
    _index: dict[str, FieldDefinition] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        seen: dict[str, FieldDefinition] = {}
        for definition in self.fields:
            if definition.on is not None and definition.on not in self.composition:
                msg = (
                    f"Field {definition.name!r} is declared on {definition.on!r}, "
                    f"which is not part of the composition {list(self.composition)}"
                )
                raise ConfigurationError(msg)
            seen[definition.name] = definition
        self._index.update(seen)

    @property
    def primary(self) -> str | None:
        """Owner key used for identity delegation (first composed owner)."""
        return self.composition[0] if self.composition else None

    @property
    def names(self) -> list[str]:
        return [definition.name for definition in self.fields]

    def owner_of(self, definition: FieldDefinition) -> str | None:
        return definition.on or self.primary

    def get(self, name: str) -> FieldDefinition:
        try:
            return self._index[name]
        except KeyError:
            msg = f"Unknown field: {name!r}"
            raise KeyError(msg) from None

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)
