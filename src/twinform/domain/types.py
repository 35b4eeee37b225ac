"""Classification enums shared across the pipeline stages."""

from __future__ import annotations

from enum import StrEnum


class SaveStrategy(StrEnum):
    """How the persister aggregates failing saves across nested objects."""

    COLLECT_ALL = "collect_all"
    SHORT_CIRCUIT = "short_circuit"


class FailureCode(StrEnum):
    """Codes attached to save failures in a SaveResult."""

    SAVE_REJECTED = "SAVE_REJECTED"
    SAVE_RAISED = "SAVE_RAISED"
