"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, twinform.toml only contains
overrides. An absent file means every default applies.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from twinform.domain.types import SaveStrategy


class ValidationConfig(BaseModel):
    """[validation] section."""

    model_config = {"frozen": True}

    path_separator: str = "."


class CoercionConfig(BaseModel):
    """[coercion] section."""

    model_config = {"frozen": True}

    blank_as_none: bool = True


class PersistenceConfig(BaseModel):
    """[persistence] section."""

    model_config = {"frozen": True}

    strategy: SaveStrategy = SaveStrategy.COLLECT_ALL
    warn_unvalidated: bool = True


class LoggingConfig(BaseModel):
    """[logging] section. ``json`` in TOML maps to ``json_output``."""

    model_config = {"frozen": True, "populate_by_name": True}

    verbose: bool = False
    json_output: bool = Field(default=False, alias="json")


class TwinformConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    coercion: CoercionConfig = Field(default_factory=CoercionConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
