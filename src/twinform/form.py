"""Form — an in-memory twin of one or more domain objects.

A form subclass declares its fields as class attributes::

    class SongForm(Form):
        title = Property(validators=[Presence()])
        length = Property(coerce="int")

    class AlbumForm(Form):
        title = Property(validators=[Presence(), Length(maximum=50)])
        songs = Collection(SongForm, populate_if_empty=Song)
        password_confirmation = Property(virtual=True)

The declarations are collected into a :class:`Schema` when the class is
created. Lifecycle of an instance:

    construct (read) → validate (deserialize + rules) → sync / save

INVARIANT: Domain objects are mutated only by ``sync()`` and ``save()``.
Field values change only inside ``validate()``.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from types import SimpleNamespace
from typing import Any, ClassVar, Self

from twinform.config.settings import TwinformSettings, get_settings
from twinform.domain.coercion import CoercionTable
from twinform.domain.definitions import FieldDefinition, Schema, SkipPredicate, resolve_skip_if
from twinform.domain.errors import ConfigurationError, ErrorCollection
from twinform.domain.rules import FieldRule, FormRule
from twinform.infrastructure.composition import Owners
from twinform.infrastructure.documents import load_document
from twinform.plugins.manager import PluginManager
from twinform.services.deserializer import Deserializer
from twinform.services.persister import Persister
from twinform.services.result import SaveResult
from twinform.services.synchronizer import Synchronizer
from twinform.services.validator import Validator

logger = logging.getLogger(__name__)

_UNSET: Any = object()


# ---------------------------------------------------------------------------
# Field declarations
# ---------------------------------------------------------------------------


class Property:
    """Declares a scalar field; reads back the instance value on access.

    Fields are read-only from outside the form. Assigning raises
    ``AttributeError``; values change through ``validate()``.
    """

    def __init__(
        self,
        *,
        source: str | None = None,
        readable: bool | None = None,
        writable: bool | None = None,
        writeable: bool | None = None,
        virtual: bool = False,
        coerce: Any = None,
        skip_if: str | SkipPredicate | None = None,
        default: Any = None,
        on: str | None = None,
        validators: Sequence[FieldRule] = (),
    ) -> None:
        if writable is not None and writeable is not None and writable != writeable:
            msg = "Conflicting writable= and writeable= arguments"
            raise ConfigurationError(msg)
        if writable is None:
            writable = writeable
        self.name = ""
        self._options: dict[str, Any] = {
            "source": source,
            "readable": (not virtual) if readable is None else readable,
            "writable": (not virtual) if writable is None else writable,
            "virtual": virtual,
            "coerce": coerce,
            "skip_if": resolve_skip_if(skip_if),
            "default": default,
            "on": on,
            "validators": tuple(validators),
        }

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Form | None, owner: type) -> Any:
        if instance is None:
            return self
        return instance.get(self.name)

    def __set__(self, instance: Form, value: Any) -> None:
        msg = f"{self.name!r} is read-only; change form values through validate()"
        raise AttributeError(msg)

    def to_definition(self, base: type[Form]) -> FieldDefinition:
        options = dict(self._options)
        options["source"] = options["source"] or self.name
        return FieldDefinition(name=self.name, **options)


class Nested(Property):
    """Declares a nested form backed by a nested domain object.

    *form* is a Form subclass, or a mapping of field declarations that is
    turned into an inline form class.
    """

    collection = False

    def __init__(
        self,
        form: type[Form] | Mapping[str, Property],
        *,
        populate_if_empty: Callable[[], Any] | None = None,
        save: bool = True,
        **options: Any,
    ) -> None:
        super().__init__(**options)
        self._form = form
        self._populate_if_empty = populate_if_empty
        self._save = save

    def to_definition(self, base: type[Form]) -> FieldDefinition:
        form = self._form
        if isinstance(form, Mapping):
            class_name = "".join(part.title() for part in self.name.split("_")) + "Form"
            form = type(class_name, (base,), dict(form))
        elif not (isinstance(form, type) and issubclass(form, base)):
            msg = f"Field {self.name!r}: nested form must be a Form subclass or a mapping"
            raise ConfigurationError(msg)
        options = dict(self._options)
        options["source"] = options["source"] or self.name
        return FieldDefinition(
            name=self.name,
            form=form,
            collection=self.collection,
            populate_if_empty=self._populate_if_empty,
            save=self._save,
            **options,
        )


class Collection(Nested):
    """Declares a list of nested forms backed by a list of domain objects."""

    collection = True


# ---------------------------------------------------------------------------
# Form
# ---------------------------------------------------------------------------


class Form:
    """Base class for all forms.

    Class attributes:
        composition: Owner keys for forms backed by several objects; the
            first one is primary.
        rules: Form-level rules (e.g. ``Confirmation("password")``).
        accessor: Adapter class for the domain objects; by default chosen
            per object (mapping vs attribute access).
    """

    composition: ClassVar[Sequence[str]] = ()
    rules: ClassVar[Sequence[FormRule]] = ()
    accessor: ClassVar[type | None] = None
    __schema__: ClassVar[Schema] = Schema()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declared: dict[str, Property] = {}
        for klass in reversed(cls.__mro__):
            for attr_name, attr in vars(klass).items():
                if isinstance(attr, Property):
                    declared[attr_name] = attr
                elif attr_name in declared:
                    del declared[attr_name]
        clashes = sorted(name for name in declared if hasattr(Form, name))
        if clashes:
            msg = f"{cls.__name__}: field names clash with Form attributes: {clashes}"
            raise ConfigurationError(msg)
        cls.__schema__ = Schema(
            fields=tuple(prop.to_definition(Form) for prop in declared.values()),
            rules=tuple(cls.rules),
            composition=tuple(cls.composition),
        )

    def __init__(
        self,
        model: Any = None,
        *,
        models: Mapping[str, Any] | None = None,
        settings: TwinformSettings | None = None,
        plugins: PluginManager | None = None,
        coercion: CoercionTable | None = None,
        _read: bool = True,
    ) -> None:
        self._settings = settings if settings is not None else get_settings()
        self._plugins = plugins
        if coercion is None:
            coercion = CoercionTable(blank_as_none=self._settings.coercion.blank_as_none)
        self._coercion = coercion
        self._check_coercions()

        self._owners = Owners.resolve(
            self.schema,
            model=model,
            models=models,
            accessor_cls=type(self).accessor,
        )
        separator = self._settings.validation.path_separator
        self._values: dict[str, Any] = {}
        self._changed: set[str] = set()
        self._errors = ErrorCollection(separator=separator)
        self._input_errors = ErrorCollection(separator=separator)
        self._validated = False

        for definition in self.schema:
            self._values[definition.name] = (
                self._read(definition) if _read else definition.default_value()
            )

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def schema(self) -> Schema:
        return type(self).__schema__

    @property
    def model(self) -> Any:
        """The primary domain object."""
        return self._owners.primary.target

    @property
    def models(self) -> dict[str, Any]:
        """Owner key → domain object (``{"model": obj}`` for single-model forms)."""
        return self._owners.targets()

    @property
    def errors(self) -> ErrorCollection:
        """Errors of the last ``validate()`` call (empty before any)."""
        return self._errors

    @property
    def settings(self) -> TwinformSettings:
        return self._settings

    def get(self, name: str) -> Any:
        """Current value of field *name*.

        Raises:
            KeyError: If *name* is not a declared field.
        """
        if name not in self._values:
            msg = f"{type(self).__name__} has no field {name!r}"
            raise KeyError(msg)
        return self._values[name]

    def changed(self, name: str | None = None) -> bool:
        """Whether *name* (or, without a name, anything at any depth) changed."""
        if name is None:
            return bool(self._changed) or any(
                child.changed() for _definition, _key, child in self._children()
            )
        definition = self.schema.get(name)
        if name in self._changed:
            return True
        value = self._values[name]
        if definition.collection:
            return any(child.changed() for child in value)
        if definition.nested and value is not None:
            return value.changed()
        return False

    def to_dict(self) -> dict[str, Any]:
        """Nested snapshot of form values, virtual fields included.

        Scalar values are deep-copied; mutating the snapshot never reaches
        the form or its domain objects.
        """
        snapshot: dict[str, Any] = {}
        for definition in self.schema:
            value = self._values[definition.name]
            if definition.collection:
                snapshot[definition.name] = [child.to_dict() for child in value]
            elif definition.nested:
                snapshot[definition.name] = value.to_dict() if value is not None else None
            else:
                snapshot[definition.name] = copy.deepcopy(value)
        return snapshot

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def validate(self, document: Mapping[str, Any]) -> bool:
        """Deserialize *document* onto the form, then run every rule.

        Returns True when no rule failed at any depth. Errors are available
        on :attr:`errors` until the next call.
        """
        if not isinstance(document, Mapping):
            msg = f"Input document must be a mapping, got {type(document).__name__}"
            raise ConfigurationError(msg)
        Deserializer(self._settings, self._plugins, coercion=self._coercion).deserialize(
            self, document
        )
        ok = Validator(self._settings, self._plugins).validate(self)
        self._mark_validated()
        return ok

    def validate_yaml(self, text: str) -> bool:
        """Parse a YAML (or JSON) document and :meth:`validate` it."""
        return self.validate(load_document(text))

    def sync(self) -> list[str]:
        """Write form values to the domain objects. Returns warnings."""
        return Synchronizer(self._settings, self._plugins).sync(self)

    def save(self, handler: Callable[[dict[str, Any]], Any] | None = None) -> SaveResult:
        """Sync and save the domain objects, or hand the snapshot to *handler*."""
        return Persister(self._settings, self._plugins).save(self, handler)

    # ------------------------------------------------------------------
    # Graph internals (used by the pipeline stages)
    # ------------------------------------------------------------------

    def _read(self, definition: FieldDefinition) -> Any:
        if not definition.readable:
            return definition.default_value()
        raw = self._owners.for_field(definition).get(definition.source)
        if definition.collection:
            return [self._child(definition, item) for item in (raw or [])]
        if definition.nested:
            return self._child(definition, raw) if raw is not None else None
        return definition.default_value() if raw is None else copy.deepcopy(raw)

    def _child(self, definition: FieldDefinition, model: Any, *, read: bool = True) -> Form:
        assert definition.form is not None
        return definition.form(
            model,
            settings=self._settings,
            plugins=self._plugins,
            coercion=self._coercion,
            _read=read,
        )

    def _spawn(self, definition: FieldDefinition) -> Form:
        """New nested form for input with no existing nested object."""
        factory = definition.populate_if_empty or SimpleNamespace
        logger.debug("Populating %s on %s", definition.name, type(self).__name__)
        return self._child(definition, factory(), read=False)

    def _assign(self, name: str, value: Any) -> None:
        old = self._values[name]
        if type(old) is not type(value) or old != value:
            self._changed.add(name)
        self._values[name] = value

    def _children(self) -> Iterator[tuple[FieldDefinition, int | None, Form]]:
        """Yield ``(definition, index, child)`` for every nested form.

        *index* is None for single nested forms.
        """
        for definition in self.schema:
            value = self._values[definition.name]
            if definition.collection:
                for index, child in enumerate(value):
                    yield definition, index, child
            elif definition.nested and value is not None:
                yield definition, None, value

    def _mark_validated(self) -> None:
        self._validated = True
        for _definition, _key, child in self._children():
            child._mark_validated()

    def _check_coercions(self) -> None:
        for definition in self.schema:
            if definition.coerce is not None:
                self._coercion.resolve(definition.coerce)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def blank(cls, model: Any = _UNSET, **options: Any) -> Self:
        """A form that does not read its domain object (defaults only).

        Composed forms get one empty object per owner unless *models* is given.
        """
        if model is _UNSET and cls.composition:
            options.setdefault("models", {key: SimpleNamespace() for key in cls.composition})
            return cls(_read=False, **options)
        if model is _UNSET:
            model = SimpleNamespace()
        return cls(model, _read=False, **options)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r})"
