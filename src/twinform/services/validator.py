"""Validator — runs declared rules against the deserialized form graph.

Each node gets a fresh ErrorCollection holding its own errors plus those of
its nested nodes under prefixed paths (``"artist.name"``,
``"songs.1.title"``). Input errors recorded by the deserializer (coercion
failures, structural mismatches) are merged in first.

INVARIANT: Validation reads form values only; domain objects are untouched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from twinform.domain.errors import ErrorCollection, join_path
from twinform.services.base import BaseStage

if TYPE_CHECKING:
    from twinform.form import Form

logger = logging.getLogger(__name__)


class Validator(BaseStage):
    """Evaluates field and form rules at every depth."""

    def validate(self, form: Form) -> bool:
        """Replace the error collections on *form* and its nested forms.

        Returns True when no node has any error.
        """
        errors = self._validate_node(form)
        warnings: list[str] = []
        ok = not errors
        self._dispatch_event("post_validate", warnings, form=form, ok=ok, errors=errors)
        for warning in warnings:
            logger.warning(warning)
        logger.debug(
            "Validated %s: ok=%s paths=%s", type(form).__name__, ok, list(errors)
        )
        return ok

    def _validate_node(self, form: Form) -> ErrorCollection:
        sep = self.separator
        errors = ErrorCollection(separator=sep)
        errors.merge("", form._input_errors)

        for definition in form.schema:
            value = form.get(definition.name)
            for rule in definition.validators:
                for message in rule.validate(value, form):
                    errors.add(definition.name, message)

        for rule in form.schema.rules:
            for path, message in rule.validate(form):
                errors.add(path, message)

        for definition, key, child in form._children():
            prefix = (
                join_path(definition.name, key, separator=sep)
                if key is not None
                else definition.name
            )
            errors.merge(prefix, self._validate_node(child))

        form._errors = errors
        return errors
