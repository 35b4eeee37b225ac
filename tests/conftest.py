"""Shared pytest fixtures for twinform tests."""

from __future__ import annotations

import pytest

from tests.models import Album, Artist, Song
from twinform import TwinformSettings


@pytest.fixture(autouse=True)
def _default_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Forms built without settings= use code defaults, not a discovered file."""
    monkeypatch.setattr("twinform.form.get_settings", TwinformSettings)


@pytest.fixture
def settings() -> TwinformSettings:
    return TwinformSettings()


@pytest.fixture
def album() -> Album:
    """Album with an artist and two songs."""
    return Album(
        title="Old",
        artist=Artist(name="The Stooges"),
        songs=[Song(title="Search and Destroy", length=210), Song(title="Gimme Danger")],
    )
