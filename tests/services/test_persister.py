"""Tests for the Persister stage."""

from __future__ import annotations

from typing import Any

import pluggy

from tests.models import Album, AlbumForm, Artist, Song, SongForm
from twinform import Collection, Form, Nested, Property
from twinform.config.settings import TwinformSettings
from twinform.domain.types import FailureCode, SaveStrategy
from twinform.plugins.manager import PluginManager
from twinform.services.persister import Persister
from twinform.services.result import SaveResult

hookimpl = pluggy.HookimplMarker("twinform")


class _ArtistOnlyForm(Form):
    title = Property()
    artist = Nested({"name": Property()})
    songs = Collection(SongForm, save=False)


class _SaveRecorder:
    def __init__(self) -> None:
        self.results: list[SaveResult] = []

    @hookimpl
    def post_save(self, form: Any, result: SaveResult) -> None:
        self.results.append(result)


def _validated(album: Album, **options: Any) -> AlbumForm:
    form = AlbumForm(album, **options)
    assert form.validate({"title": "New"})
    return form


class TestSave:
    def test_saves_primary_then_nested(self, settings: TwinformSettings, album: Album) -> None:
        result = Persister(settings).save(_validated(album))
        assert result.ok
        assert result.op == "save"
        assert result.saved == ["model", "artist", "songs.0", "songs.1"]
        assert album.title == "New"
        assert album.save_calls == 1
        assert album.artist.save_calls == 1
        assert [song.save_calls for song in album.songs] == [1, 1]

    def test_save_opt_out(self, settings: TwinformSettings, album: Album) -> None:
        form = _ArtistOnlyForm(album)
        form.validate({})
        result = Persister(settings).save(form)
        assert result.saved == ["model", "artist"]
        assert [song.save_calls for song in album.songs] == [0, 0]

    def test_objects_without_save_skipped(self, settings: TwinformSettings) -> None:
        class HashForm(Form):
            title = Property()

        data = {"title": "Old"}
        form = HashForm(data)
        form.validate({"title": "New"})
        result = Persister(settings).save(form)
        assert result.ok
        assert result.saved == []
        assert data == {"title": "New"}

    def test_shared_object_saved_once(self, settings: TwinformSettings, album: Album) -> None:
        class AlbumAndArtistForm(Form):
            composition = ("album", "artist")

            title = Property(on="album")
            artist = Nested({"name": Property()}, on="album")

        form = AlbumAndArtistForm(models={"album": album, "artist": album.artist})
        form.validate({"artist": {"name": "Iggy"}})
        result = Persister(settings).save(form)
        assert result.saved == ["album", "artist"]
        assert album.artist.save_calls == 1
        assert album.artist.name == "Iggy"


class TestFailures:
    def test_collect_all(self, settings: TwinformSettings, album: Album) -> None:
        album.artist.save_outcome = False
        album.songs[1].save_outcome = RuntimeError("disk full")

        result = Persister(settings).save(_validated(album))
        assert not result.ok
        assert result.saved == ["model", "songs.0"]
        assert [(f.path, f.code) for f in result.failures] == [
            ("artist", FailureCode.SAVE_REJECTED),
            ("songs.1", FailureCode.SAVE_RAISED),
        ]
        assert result.failures[1].message == "disk full"
        assert result.failures[1].detail == {"exception": "RuntimeError"}

    def test_short_circuit(self, album: Album) -> None:
        settings = TwinformSettings(persistence={"strategy": "short_circuit"})
        assert settings.persistence.strategy is SaveStrategy.SHORT_CIRCUIT
        album.artist.save_outcome = False

        result = Persister(settings).save(_validated(album, settings=settings))
        assert not result.ok
        assert result.saved == ["model"]
        assert [f.path for f in result.failures] == ["artist"]
        assert [song.save_calls for song in album.songs] == [0, 0]

    def test_failures_are_not_validation_errors(
        self, settings: TwinformSettings, album: Album
    ) -> None:
        album.save_outcome = False
        form = _validated(album)
        result = Persister(settings).save(form)
        assert not result.ok
        assert not form.errors


class TestHandler:
    def test_handler_receives_snapshot_without_sync(
        self, settings: TwinformSettings, album: Album
    ) -> None:
        form = _validated(album)
        seen: list[dict[str, Any]] = []

        def handler(snapshot: dict[str, Any]) -> str:
            seen.append(snapshot)
            return "handled"

        result = Persister(settings).save(form, handler)
        assert result.ok
        assert result.op == "save_with_handler"
        assert result.data["result"] == "handled"
        assert seen[0]["title"] == "New"
        assert seen[0]["songs"][0]["title"] == "Search and Destroy"
        assert album.title == "Old"
        assert album.save_calls == 0


class TestHooks:
    def test_post_save_dispatched(self, settings: TwinformSettings, album: Album) -> None:
        pm = PluginManager()
        recorder = _SaveRecorder()
        pm.register_plugin(recorder)
        result = Persister(settings, pm).save(_validated(album, plugins=pm))
        assert recorder.results == [result]

    def test_new_collection_entries_saved(self, settings: TwinformSettings) -> None:
        album = Album(title="Idiot", artist=Artist(name="Iggy"), songs=[])
        form = AlbumForm(album)
        assert form.validate({"songs": [{"title": "Nightclubbing"}]})
        result = Persister(settings).save(form)
        assert result.saved == ["model", "artist", "songs.0"]
        assert isinstance(album.songs[0], Song)
        assert album.songs[0].save_calls == 1
