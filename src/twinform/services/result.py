"""SaveResult and SaveFailure — the persister's return contract.

Validation failures are an ErrorCollection on the form; save failures are
SaveFailure entries here. The two never mix, because saving happens after
the single validation checkpoint.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from twinform.domain.types import FailureCode


class SaveFailure(BaseModel):
    """One domain object whose save was rejected or raised."""

    model_config = {"frozen": True}

    path: str
    code: FailureCode
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class SaveResult(BaseModel):
    """Outcome of ``form.save()``.

    Attributes:
        ok: No save failed.
        op: ``"save"`` or ``"save_with_handler"``.
        saved: Paths of the domain objects saved successfully, in order.
        failures: Rejected or raising saves.
        warnings: Non-fatal issues (plugin failures, unvalidated form).
        data: Handler snapshot and return value when a handler was given.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    saved: list[str] = Field(default_factory=list)
    failures: list[SaveFailure] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.ok
