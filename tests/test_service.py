"""Tests for notes_api.service — query and command rules."""

from __future__ import annotations

import itertools
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from notes_api.errors import NoteNotFoundError
from notes_api.models import NoteUpdate
from notes_api.service import NotesService, coerce_page_param
from notes_api.storage import NoteStorage

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ticking_clock():
    """Clock returning strictly increasing timestamps, one second apart."""
    counter = itertools.count(1)
    return lambda: f"2024-01-01T00:{next(counter):02d}:00.000Z"


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "notes.json"


@pytest.fixture()
def storage(data_file: Path) -> NoteStorage:
    return NoteStorage(storage_path=data_file)


@pytest.fixture()
def service(storage: NoteStorage) -> NotesService:
    return NotesService(storage, clock=_ticking_clock())


def _titles(page) -> list[str]:
    return [n.title for n in page.data]


# ---------------------------------------------------------------------------
# coerce_page_param
# ---------------------------------------------------------------------------


class TestCoercePageParam:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, None),
            (3, 3),
            ("3", 3),
            ("2.9", 2),
            (-4, 0),
            ("-1", 0),
            ("abc", None),
            ("", None),
            ("inf", None),
            ("nan", None),
            ("1_000", None),
            ("1e3", None),
            ("0x10", None),
            (" 7 ", 7),
            ("+5", 5),
            (2.5, 2),
            (True, None),
        ],
    )
    def test_values(self, raw, expected) -> None:
        assert coerce_page_param(raw) == expected


# ---------------------------------------------------------------------------
# create / get
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_assigns_id_and_timestamps(self, service: NotesService) -> None:
        note = service.create(title="Hello", content="World")
        assert note.id
        assert note.title == "Hello"
        assert note.content == "World"
        assert note.created_at == note.updated_at == "2024-01-01T00:01:00.000Z"

    def test_create_persists(self, service: NotesService, data_file: Path) -> None:
        note = service.create(title="Hello", content="")
        assert json.loads(data_file.read_text())[0]["id"] == note.id

    def test_ids_unique_across_creates(self, service: NotesService) -> None:
        ids = {service.create(title=f"n{i}").id for i in range(50)}
        assert len(ids) == 50

    def test_get_by_id(self, service: NotesService) -> None:
        note = service.create(title="Find me")
        assert service.get_by_id(note.id) == note

    def test_get_unknown_raises(self, service: NotesService) -> None:
        with pytest.raises(NoteNotFoundError) as exc_info:
            service.get_by_id("missing")
        assert exc_info.value.note_id == "missing"


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


class TestList:
    @pytest.fixture()
    def five(self, service: NotesService) -> list:
        return [service.create(title=f"Note {i}", content=f"body {i}") for i in range(1, 6)]

    def test_empty(self, service: NotesService) -> None:
        page = service.list()
        assert page.data == []
        assert page.pagination.model_dump() == {"total": 0, "limit": None, "offset": 0}

    def test_most_recently_updated_first(self, service: NotesService, five) -> None:
        page = service.list()
        assert _titles(page) == ["Note 5", "Note 4", "Note 3", "Note 2", "Note 1"]
        assert page.pagination.total == 5

    def test_update_moves_note_to_front(self, service: NotesService, five) -> None:
        service.update(five[0].id, NoteUpdate(content="touched"))
        assert _titles(service.list())[0] == "Note 1"

    def test_ties_keep_insertion_order(self, storage: NoteStorage) -> None:
        service = NotesService(storage, clock=lambda: "2024-01-01T00:00:00.000Z")
        for title in ("first", "second", "third"):
            service.create(title=title)
        assert _titles(service.list()) == ["first", "second", "third"]

    def test_limit_and_offset(self, service: NotesService, five) -> None:
        page = service.list(limit=2, offset=1)
        assert _titles(page) == ["Note 4", "Note 3"]
        assert page.pagination.model_dump() == {"total": 5, "limit": 2, "offset": 1}

    def test_offset_without_limit(self, service: NotesService, five) -> None:
        page = service.list(offset=3)
        assert _titles(page) == ["Note 2", "Note 1"]
        assert page.pagination.limit is None
        assert page.pagination.offset == 3

    def test_offset_past_end(self, service: NotesService, five) -> None:
        page = service.list(offset=10)
        assert page.data == []
        assert page.pagination.total == 5

    def test_limit_zero(self, service: NotesService, five) -> None:
        page = service.list(limit=0)
        assert page.data == []
        assert page.pagination.model_dump() == {"total": 5, "limit": 0, "offset": 0}

    def test_string_params(self, service: NotesService, five) -> None:
        page = service.list(limit="2", offset="3")
        assert _titles(page) == ["Note 2", "Note 1"]

    def test_malformed_params_are_ignored(self, service: NotesService, five) -> None:
        page = service.list(limit="lots", offset="some")
        assert len(page.data) == 5
        assert page.pagination.model_dump() == {"total": 5, "limit": None, "offset": 0}

    def test_negative_params_clamp_to_zero(self, service: NotesService, five) -> None:
        page = service.list(limit=-1, offset=-3)
        assert page.data == []
        assert page.pagination.model_dump() == {"total": 5, "limit": 0, "offset": 0}

    def test_search_title_and_content_case_insensitive(self, service: NotesService) -> None:
        service.create(title="Meeting notes", content="Discuss roadmap")
        service.create(title="Shopping list", content="Buy FOO milk")
        service.create(title="Foo fighters", content="")
        service.create(title="Other", content="nothing here")
        page = service.list(q="foo")
        assert _titles(page) == ["Foo fighters", "Shopping list"]
        assert page.pagination.total == 2

    def test_total_counts_filtered_before_paging(self, service: NotesService) -> None:
        for i in range(4):
            service.create(title=f"match {i}")
        service.create(title="other")
        page = service.list(q="MATCH", limit=1, offset=1)
        assert _titles(page) == ["match 2"]
        assert page.pagination.model_dump() == {"total": 4, "limit": 1, "offset": 1}

    @pytest.mark.parametrize("q", [None, "", "   "])
    def test_blank_query_does_not_filter(self, service: NotesService, five, q) -> None:
        assert service.list(q=q).pagination.total == 5

    def test_no_match(self, service: NotesService, five) -> None:
        page = service.list(q="zzzznotfound")
        assert page.data == []
        assert page.pagination.total == 0

    def test_list_never_writes(self, service: NotesService, storage: NoteStorage) -> None:
        service.create(title="a")
        with patch.object(storage, "_persist") as persist:
            service.list(q="a", limit=1)
            service.get_by_id(storage.all()[0].id)
        persist.assert_not_called()


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_empty_string_differs_from_omitted(self, service: NotesService) -> None:
        note = service.create(title="Keep", content="Clear me")
        updated = service.update(note.id, NoteUpdate(content=""))
        assert updated.content == ""
        assert updated.title == "Keep"
        assert updated.updated_at > note.updated_at
        assert updated.created_at == note.created_at
        assert updated.id == note.id

    def test_both_fields_may_become_empty(self, service: NotesService) -> None:
        note = service.create(title="T", content="C")
        updated = service.update(note.id, NoteUpdate(title="", content=""))
        assert updated.title == ""
        assert updated.content == ""

    def test_no_fields_still_bumps_updated_at(self, service: NotesService) -> None:
        note = service.create(title="T", content="C")
        updated = service.update(note.id, NoteUpdate())
        assert (updated.title, updated.content) == ("T", "C")
        assert updated.updated_at > note.updated_at

    def test_explicit_none_is_ignored(self, service: NotesService) -> None:
        note = service.create(title="T", content="C")
        updated = service.update(note.id, NoteUpdate(title=None))
        assert updated.title == "T"

    def test_update_persists(self, service: NotesService, data_file: Path) -> None:
        note = service.create(title="T")
        service.update(note.id, NoteUpdate(title="New"))
        assert json.loads(data_file.read_text())[0]["title"] == "New"

    def test_update_is_visible_through_get(self, service: NotesService) -> None:
        note = service.create(title="T")
        service.update(note.id, NoteUpdate(title="New"))
        assert service.get_by_id(note.id).title == "New"

    def test_unknown_id_raises_without_writing(self, service: NotesService, storage: NoteStorage) -> None:
        with patch.object(storage, "_persist") as persist:
            with pytest.raises(NoteNotFoundError):
                service.update("missing", NoteUpdate(title="x"))
        persist.assert_not_called()


# ---------------------------------------------------------------------------
# remove
# ---------------------------------------------------------------------------


class TestRemove:
    def test_remove(self, service: NotesService, data_file: Path) -> None:
        keep = service.create(title="keep")
        gone = service.create(title="gone")
        service.remove(gone.id)
        assert [n.id for n in service.list().data] == [keep.id]
        assert [r["id"] for r in json.loads(data_file.read_text())] == [keep.id]
        with pytest.raises(NoteNotFoundError):
            service.get_by_id(gone.id)

    def test_remove_twice(self, service: NotesService) -> None:
        note = service.create(title="once")
        service.remove(note.id)
        with pytest.raises(NoteNotFoundError):
            service.remove(note.id)

    def test_unknown_id_raises_without_writing(self, service: NotesService, storage: NoteStorage) -> None:
        with patch.object(storage, "_persist") as persist:
            with pytest.raises(NoteNotFoundError):
                service.remove("missing")
        persist.assert_not_called()


# ---------------------------------------------------------------------------
# Restart
# ---------------------------------------------------------------------------


class TestRestart:
    def test_reload_yields_same_notes_and_order(self, service: NotesService, data_file: Path) -> None:
        notes = [service.create(title=f"n{i}", content=f"c{i}") for i in range(4)]
        service.update(notes[1].id, NoteUpdate(title="edited"))
        service.remove(notes[3].id)
        before = service.list()

        reloaded = NotesService(NoteStorage(storage_path=data_file))
        after = reloaded.list()
        assert after == before
        assert [n.title for n in after.data] == ["edited", "n2", "n0"]

    def test_persist_failure_does_not_fail_operations(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        storage = NoteStorage(storage_path=blocker / "notes.json")
        service = NotesService(storage, clock=_ticking_clock())

        note = service.create(title="still works")
        updated = service.update(note.id, NoteUpdate(content="also works"))
        assert updated.content == "also works"
        service.remove(note.id)
        assert storage.healthy is False
        assert service.list().pagination.total == 0
