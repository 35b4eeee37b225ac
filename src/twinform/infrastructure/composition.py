"""Owner resolution for single-model and composed forms.

A composed form is backed by several domain objects. Each field names its
owner with ``on=``; the first composed owner is primary and is what
``form.model`` returns.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from twinform.domain.definitions import FieldDefinition, Schema
from twinform.domain.errors import ConfigurationError
from twinform.infrastructure.accessors import Accessor, accessor_for


class Owners:
    """Owner key → accessor routing table for one form instance."""

    def __init__(self, schema: Schema, accessors: dict[str | None, Accessor]) -> None:
        self._schema = schema
        self._accessors = accessors

    @classmethod
    def resolve(
        cls,
        schema: Schema,
        *,
        model: Any = None,
        models: Mapping[str, Any] | None = None,
        accessor_cls: type | None = None,
    ) -> Owners:
        """Build the routing table for *model* or composed *models*.

        Raises:
            ConfigurationError: On a missing, extra, or mismatched owner.
        """
        if schema.composition:
            if model is not None:
                msg = "Composed forms take models={...}, not a single model"
                raise ConfigurationError(msg)
            supplied = dict(models or {})
            missing = [key for key in schema.composition if supplied.get(key) is None]
            if missing:
                msg = f"Missing models for composition owners: {missing}"
                raise ConfigurationError(msg)
            unknown = sorted(set(supplied) - set(schema.composition))
            if unknown:
                msg = f"Models given for undeclared owners: {unknown}"
                raise ConfigurationError(msg)
            return cls(
                schema,
                {key: accessor_for(supplied[key], accessor_cls) for key in schema.composition},
            )

        if models is not None:
            msg = "models={...} requires a composition declaration on the form"
            raise ConfigurationError(msg)
        return cls(schema, {None: accessor_for(model, accessor_cls)})

    def for_field(self, definition: FieldDefinition) -> Accessor:
        return self._accessors[self._schema.owner_of(definition)]

    @property
    def primary(self) -> Accessor:
        return self._accessors[self._schema.primary]

    def items(self) -> list[tuple[str | None, Accessor]]:
        """Owners in declaration order, primary first."""
        return list(self._accessors.items())

    def targets(self) -> dict[str, Any]:
        if self._schema.composition:
            return {key: acc.target for key, acc in self._accessors.items() if key is not None}
        return {"model": self.primary.target}
