"""Tests for config models — defaults and sparse overrides."""

import pytest
from pydantic import ValidationError

from twinform.config.models import LoggingConfig, PersistenceConfig, TwinformConfig
from twinform.domain.types import SaveStrategy


class TestTwinformConfig:
    def test_full_defaults(self) -> None:
        cfg = TwinformConfig()
        assert cfg.validation.path_separator == "."
        assert cfg.coercion.blank_as_none is True
        assert cfg.persistence.strategy is SaveStrategy.COLLECT_ALL
        assert cfg.persistence.warn_unvalidated is True
        assert cfg.logging.verbose is False
        assert cfg.logging.json_output is False

    def test_sparse_override(self) -> None:
        cfg = TwinformConfig.model_validate({"coercion": {"blank_as_none": False}})
        assert cfg.coercion.blank_as_none is False
        assert cfg.validation.path_separator == "."

    def test_frozen(self) -> None:
        cfg = TwinformConfig()
        with pytest.raises(ValidationError):
            cfg.validation = None  # type: ignore[misc,assignment]


class TestPersistenceConfig:
    def test_unknown_strategy_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PersistenceConfig(strategy="best_effort")


class TestLoggingConfig:
    def test_json_alias(self) -> None:
        assert LoggingConfig.model_validate({"json": True}).json_output is True

    def test_field_name_accepted(self) -> None:
        assert LoggingConfig(json_output=True).json_output is True
