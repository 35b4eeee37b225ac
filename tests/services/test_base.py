"""Tests for BaseStage and stage inheritance."""

from __future__ import annotations

import pluggy
import pytest

from twinform.config.settings import TwinformSettings
from twinform.plugins.manager import PluginManager
from twinform.services.base import BaseStage
from twinform.services.deserializer import Deserializer
from twinform.services.persister import Persister
from twinform.services.synchronizer import Synchronizer
from twinform.services.validator import Validator

hookimpl = pluggy.HookimplMarker("twinform")


class _ExplodingPlugin:
    @hookimpl
    def post_sync(self, form: object) -> None:
        raise RuntimeError("plugin bug")


class TestBaseStage:
    def test_settings_stored(self, settings: TwinformSettings) -> None:
        stage = BaseStage(settings)
        assert stage._settings is settings
        assert stage.separator == "."

    def test_dispatch_without_plugins_is_noop(self, settings: TwinformSettings) -> None:
        warnings: list[str] = []
        BaseStage(settings)._dispatch_event("post_sync", warnings, form=None)
        assert warnings == []

    def test_plugin_failure_becomes_warning(self, settings: TwinformSettings) -> None:
        pm = PluginManager()
        pm.register_plugin(_ExplodingPlugin())
        warnings: list[str] = []
        BaseStage(settings, pm)._dispatch_event("post_sync", warnings, form=None)
        assert warnings == ["Event dispatch failed for post_sync"]


ALL_STAGES = [Validator, Synchronizer, Persister]


class TestStageInheritance:
    @pytest.mark.parametrize("stage_cls", [*ALL_STAGES, Deserializer], ids=lambda c: c.__name__)
    def test_inherits_base_stage(self, stage_cls: type) -> None:
        assert issubclass(stage_cls, BaseStage)

    @pytest.mark.parametrize("stage_cls", ALL_STAGES, ids=lambda c: c.__name__)
    def test_settings_injection(self, stage_cls: type, settings: TwinformSettings) -> None:
        stage = stage_cls(settings)
        assert stage._settings is settings
        assert stage._plugins is None
