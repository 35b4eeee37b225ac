"""Synchronizer — writes form values back onto the domain objects.

Nested forms are synced before their parent so the parent can be handed
the (possibly newly populated) nested domain objects. Each write goes to
the accessor of the field's owner.

INVARIANT: Never called implicitly. Only ``form.sync()`` and
``form.save()`` reach this stage. Repeated calls write the same values.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from twinform.services.base import BaseStage

if TYPE_CHECKING:
    from twinform.form import Form

logger = logging.getLogger(__name__)


class Synchronizer(BaseStage):
    """Copies writable, non-virtual field values into domain objects."""

    def sync(self, form: Form) -> list[str]:
        """Sync *form* and every nested form. Returns warnings."""
        warnings: list[str] = []
        if not form._validated and self._settings.persistence.warn_unvalidated:
            message = f"{type(form).__name__} synced without a prior validate()"
            logger.warning(message)
            warnings.append(message)
        written = self._sync_node(form)
        logger.debug("Synced %s: %d field(s) written", type(form).__name__, written)
        self._dispatch_event("post_sync", warnings, form=form)
        return warnings

    def _sync_node(self, form: Form) -> int:
        written = 0
        for definition in form.schema:
            if not definition.syncable:
                continue
            accessor = form._owners.for_field(definition)
            value = form.get(definition.name)
            if definition.collection:
                for child in value:
                    written += self._sync_node(child)
                accessor.set(definition.source, [child.model for child in value])
            elif definition.nested:
                if value is not None:
                    written += self._sync_node(value)
                accessor.set(definition.source, value.model if value is not None else None)
            else:
                accessor.set(definition.source, value)
            written += 1
        return written
