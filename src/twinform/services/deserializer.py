"""Deserializer — applies an input document onto the form graph.

Pipeline per field: SKIP? → (RECURSE | ALIGN | COERCE) → ASSIGN

- Keys absent from the document leave their field untouched.
- Undeclared keys are ignored.
- Collections align positionally; surplus entries create new nested forms
  backed by ``populate_if_empty`` objects; existing forms past the end of
  the incoming list are kept.

INVARIANT: Only form values change. Domain objects are never touched here.
Structural mismatches and coercion failures are recorded on each node's
input errors and surface later as validation errors.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from twinform.domain.coercion import CoercionTable
from twinform.domain.errors import ErrorCollection
from twinform.services.base import BaseStage

if TYPE_CHECKING:
    from twinform.config.settings import TwinformSettings
    from twinform.domain.definitions import FieldDefinition
    from twinform.form import Form
    from twinform.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

NOT_A_MAPPING = "must be a mapping"
NOT_A_SEQUENCE = "must be a list"


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


class Deserializer(BaseStage):
    """Writes document values into form nodes, recursively."""

    def __init__(
        self,
        settings: TwinformSettings,
        plugins: PluginManager | None = None,
        *,
        coercion: CoercionTable,
    ) -> None:
        super().__init__(settings, plugins)
        self._coercion = coercion

    def deserialize(self, form: Form, document: Mapping[str, Any]) -> None:
        """Update *form* in place from *document*."""
        self._reset(form)
        self._apply(form, document)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset(self, form: Form) -> None:
        """Clear input errors left by a previous call, at every depth."""
        form._input_errors = ErrorCollection(separator=self.separator)
        for _definition, _key, child in form._children():
            self._reset(child)

    def _apply(self, form: Form, document: Mapping[str, Any]) -> None:
        for definition in form.schema:
            if definition.name not in document:
                continue
            fragment = document[definition.name]
            if definition.collection:
                self._apply_collection(form, definition, fragment)
                continue
            if definition.skip_if is not None and definition.skip_if(fragment, form):
                logger.debug("Skipped %s on %s", definition.name, type(form).__name__)
                continue
            if definition.nested:
                self._apply_nested(form, definition, fragment)
            else:
                self._apply_scalar(form, definition, fragment)

    def _apply_scalar(self, form: Form, definition: FieldDefinition, fragment: Any) -> None:
        value = fragment
        if definition.coerce is not None:
            value, error = self._coercion.coerce(definition.coerce, fragment)
            if error is not None:
                form._input_errors.add(definition.name, error)
        form._assign(definition.name, value)

    def _apply_nested(self, form: Form, definition: FieldDefinition, fragment: Any) -> None:
        if fragment is None:
            form._assign(definition.name, None)
            return
        if not isinstance(fragment, Mapping):
            form._input_errors.add(definition.name, NOT_A_MAPPING)
            return
        child = form.get(definition.name)
        if child is None:
            child = form._spawn(definition)
            form._assign(definition.name, child)
        self._apply(child, fragment)

    def _apply_collection(self, form: Form, definition: FieldDefinition, fragment: Any) -> None:
        if not _is_sequence(fragment):
            form._input_errors.add(definition.name, NOT_A_SEQUENCE)
            return

        skip_if = definition.skip_if
        entries = [
            entry for entry in fragment if skip_if is None or not skip_if(entry, form)
        ]

        # Indexes count kept entries only; a malformed entry holds its slot.
        children: list[Form] = list(form.get(definition.name))
        for index, entry in enumerate(entries):
            if index >= len(children):
                children.append(form._spawn(definition))
            if not isinstance(entry, Mapping):
                path = f"{definition.name}{self.separator}{index}"
                form._input_errors.add(path, NOT_A_MAPPING)
                continue
            self._apply(children[index], entry)

        form._assign(definition.name, children)
