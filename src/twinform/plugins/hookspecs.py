"""Pluggy hook specifications for twinform pipeline events and setup extensions.

Three pipeline events are dispatched synchronously after validate, sync,
and save. One setup-time hook allows plugins to register coercions.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from twinform.domain.errors import ErrorCollection
    from twinform.form import Form
    from twinform.services.result import SaveResult

hookspec = pluggy.HookspecMarker("twinform")


class TwinformHookSpec:
    """Hook specifications for the twinform plugin system."""

    @hookspec
    def post_validate(self, form: Form, ok: bool, errors: ErrorCollection) -> None:
        """Called after a form was deserialized and validated."""

    @hookspec
    def post_sync(self, form: Form) -> None:
        """Called after form values were written to the domain objects."""

    @hookspec
    def post_save(self, form: Form, result: SaveResult) -> None:
        """Called after the persister ran, whether or not saves failed."""

    @hookspec
    def register_coercers(self) -> dict[str, Callable[[Any], Any]] | None:
        """Return name -> converter mappings to extend COERCION_REGISTRY."""
