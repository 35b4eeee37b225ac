"""Persister — sync, then save every owned domain object.

Pipeline: SYNC → COLLECT TARGETS → SAVE → RESPOND

Save order: composition owners (primary first), then nested domain objects
depth-first in declaration order. Nested fields declared with
``save=False`` are skipped together with everything below them. Objects
without a save operation are skipped silently.

A save fails when it returns ``False`` or raises. Failures are reported as
SaveFailure entries, never as validation errors. With the
``collect_all`` strategy every save is attempted; ``short_circuit`` stops
at the first failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from twinform.domain.errors import join_path
from twinform.domain.types import FailureCode, SaveStrategy
from twinform.services.base import BaseStage
from twinform.services.result import SaveFailure, SaveResult
from twinform.services.synchronizer import Synchronizer

if TYPE_CHECKING:
    from twinform.form import Form
    from twinform.infrastructure.accessors import Accessor

logger = logging.getLogger(__name__)

ROOT_PATH = "model"


class Persister(BaseStage):
    """Runs the synchronizer and the save operations of a form graph."""

    def save(
        self,
        form: Form,
        handler: Callable[[dict[str, Any]], Any] | None = None,
    ) -> SaveResult:
        """Persist *form*.

        With a *handler* nothing is synced or saved: the handler receives
        the nested snapshot (virtual fields included) and its return value
        is stored under ``data["result"]``.
        """
        if handler is not None:
            return self._save_with_handler(form, handler)

        warnings = Synchronizer(self._settings, self._plugins).sync(form)
        strategy = self._settings.persistence.strategy
        saved: list[str] = []
        failures: list[SaveFailure] = []

        for path, accessor in self._targets(form):
            outcome = self._save_one(path, accessor)
            if outcome is None:
                continue
            if outcome is True:
                saved.append(path)
                continue
            failures.append(outcome)
            if strategy is SaveStrategy.SHORT_CIRCUIT:
                logger.debug("Short-circuiting save after failure at %s", path)
                break

        result = SaveResult(
            ok=not failures,
            op="save",
            saved=saved,
            failures=failures,
            warnings=warnings,
        )
        post_warnings: list[str] = []
        self._dispatch_event("post_save", post_warnings, form=form, result=result)
        if post_warnings:
            result = result.model_copy(update={"warnings": [*warnings, *post_warnings]})
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _save_with_handler(
        self,
        form: Form,
        handler: Callable[[dict[str, Any]], Any],
    ) -> SaveResult:
        snapshot = form.to_dict()
        returned = handler(snapshot)
        return SaveResult(
            ok=True,
            op="save_with_handler",
            data={"snapshot": snapshot, "result": returned},
        )

    def _targets(self, form: Form) -> Iterator[tuple[str, Accessor]]:
        """Yield ``(path, accessor)`` for every object to save, in save order.

        An object reachable by several paths is saved once, under the first.
        """
        seen: set[int] = set()
        candidates = [
            *(((key or ROOT_PATH), accessor) for key, accessor in form._owners.items()),
            *self._nested_targets(form, ""),
        ]
        for path, accessor in candidates:
            if id(accessor.target) in seen:
                logger.debug("Already saved %s; skipping %s", type(accessor.target).__name__, path)
                continue
            seen.add(id(accessor.target))
            yield path, accessor

    def _nested_targets(self, form: Form, prefix: str) -> Iterator[tuple[str, Accessor]]:
        sep = self.separator
        for definition, key, child in form._children():
            if not definition.save:
                continue
            path = join_path(prefix, definition.name, separator=sep)
            if key is not None:
                path = join_path(path, key, separator=sep)
            yield path, child._owners.primary
            yield from self._nested_targets(child, path)

    def _save_one(self, path: str, accessor: Accessor) -> SaveFailure | bool | None:
        """Save one object: True when saved, None when it has no save, else the failure."""
        try:
            outcome = accessor.save()
        except Exception as exc:
            logger.warning("Save raised at %s: %s", path, exc, exc_info=True)
            return SaveFailure(
                path=path,
                code=FailureCode.SAVE_RAISED,
                message=str(exc) or type(exc).__name__,
                detail={"exception": type(exc).__name__},
            )
        if outcome is False:
            logger.warning("Save rejected at %s", path)
            return SaveFailure(
                path=path,
                code=FailureCode.SAVE_REJECTED,
                message=f"{type(accessor.target).__name__} refused to save",
            )
        if outcome is None:
            return None
        return True
