from __future__ import annotations

import asyncio
import json

import pytest

from mediagallery import catalog as catalog_module
from mediagallery.catalog import CatalogStore, new_entry_id
from mediagallery.errors import NotFound, PersistenceError
from mediagallery.models import (
    CatalogDocument,
    PasteEntry,
    find_image_by_filename,
    find_paste_by_id,
    find_video_by_id,
)


@pytest.fixture()
def path(tmp_path):
    return tmp_path / "data.json"


def test_initialize_persists_empty_document(path):
    asyncio.run(CatalogStore(path).initialize())

    assert json.loads(path.read_text()) == {
        "videos": [],
        "images": [],
        "pastes": [],
        "settings": {"darkMode": True},
    }


def test_first_read_initializes_missing_document(path):
    document = asyncio.run(CatalogStore(path).read())

    assert document == CatalogDocument()
    assert path.exists()


def test_partial_document_loads_with_defaults(path):
    path.write_text(json.dumps({"videos": [], "images": []}))

    document = asyncio.run(CatalogStore(path).read())

    assert document.pastes == []
    assert document.settings.dark_mode is True


def test_corrupt_read_falls_back_without_touching_file(path, caplog):
    path.write_text("{not json")

    document = asyncio.run(CatalogStore(path).read())

    assert document == CatalogDocument()
    assert path.read_text() == "{not json"
    assert "unreadable" in caplog.text


def test_invalid_utf8_read_falls_back_to_empty_document(path):
    path.write_bytes(b'{"videos": [\xff\xfe')

    document = asyncio.run(CatalogStore(path).read())

    assert document == CatalogDocument()
    assert path.read_bytes() == b'{"videos": [\xff\xfe'


def test_mutate_moves_invalid_utf8_document_aside(path):
    path.write_bytes(b"\xff\xfe garbage")

    def add_paste(document: CatalogDocument) -> None:
        document.pastes.append(PasteEntry(id="p1", title="t", code="c"))

    asyncio.run(CatalogStore(path).mutate(add_paste))

    quarantined = list(path.parent.glob("data.json.corrupt-*"))
    assert len(quarantined) == 1
    assert quarantined[0].read_bytes() == b"\xff\xfe garbage"
    assert [p["id"] for p in json.loads(path.read_text())["pastes"]] == ["p1"]


def test_mutate_moves_corrupt_document_aside(path):
    path.write_text("{not json")

    def add_paste(document: CatalogDocument) -> None:
        document.pastes.append(PasteEntry(id="p1", title="t", code="c"))

    asyncio.run(CatalogStore(path).mutate(add_paste))

    quarantined = list(path.parent.glob("data.json.corrupt-*"))
    assert len(quarantined) == 1
    assert quarantined[0].read_text() == "{not json"
    assert [p["id"] for p in json.loads(path.read_text())["pastes"]] == ["p1"]


def test_mutate_returns_value_and_persists(path):
    store = CatalogStore(path)

    def toggle(document: CatalogDocument) -> bool:
        document.settings.dark_mode = False
        return document.settings.dark_mode

    assert asyncio.run(store.mutate(toggle)) is False
    assert json.loads(path.read_text())["settings"] == {"darkMode": False}


def test_failed_mutation_writes_nothing(path):
    store = CatalogStore(path)
    asyncio.run(store.initialize())
    before = path.read_text()

    def explode(document: CatalogDocument) -> None:
        document.pastes.append(PasteEntry(id="p1", title="t", code="c"))
        raise NotFound("video", "missing")

    with pytest.raises(NotFound):
        asyncio.run(store.mutate(explode))
    assert path.read_text() == before


def test_write_failure_raises_persistence_error_and_cleans_temp(path, monkeypatch):
    store = CatalogStore(path)
    asyncio.run(store.initialize())
    before = path.read_text()

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(catalog_module.os, "replace", broken_replace)

    with pytest.raises(PersistenceError):
        asyncio.run(store.mutate(lambda document: document.pastes.append(PasteEntry(id="x", title="t", code="c"))))
    assert path.read_text() == before
    assert [p.name for p in path.parent.iterdir()] == ["data.json"]


def test_concurrent_mutations_are_serialized(path):
    store = CatalogStore(path)

    async def scenario() -> CatalogDocument:
        async def add(index: int) -> None:
            await store.mutate(
                lambda document: document.pastes.append(PasteEntry(id=str(index), title="t", code="c"))
            )

        await asyncio.gather(*(add(i) for i in range(25)))
        return await store.read()

    document = asyncio.run(scenario())
    assert sorted(int(p.id) for p in document.pastes) == list(range(25))


def test_reads_during_mutations_see_whole_documents(path):
    store = CatalogStore(path)
    readers: list[list[int]] = [[], []]

    async def scenario() -> None:
        async def add(index: int) -> None:
            await store.mutate(
                lambda document: document.pastes.append(PasteEntry(id=str(index), title="t", code="c"))
            )

        async def watch(observed: list[int]) -> None:
            for _ in range(40):
                observed.append(len((await store.read()).pastes))
                await asyncio.sleep(0)

        await store.initialize()
        await asyncio.gather(watch(readers[0]), *(add(i) for i in range(20)), watch(readers[1]))

    asyncio.run(scenario())

    for observed in readers:
        assert len(observed) == 40
        assert all(0 <= count <= 20 for count in observed)
        assert observed == sorted(observed)
    assert len(json.loads(path.read_text())["pastes"]) == 20


def test_lookups_return_none_for_absent_keys():
    document = CatalogDocument()
    assert find_video_by_id(document, "nonexistent-id") is None
    assert find_image_by_filename(document, "nope.png") is None
    assert find_paste_by_id(document, "nope") is None


def test_new_entry_id_skips_taken_ids(monkeypatch):
    suffixes = iter(["aaaa", "aaaa", "bbbb"])
    monkeypatch.setattr(catalog_module.time, "time", lambda: 1700000000.0)
    monkeypatch.setattr(catalog_module.secrets, "token_hex", lambda n: next(suffixes))

    assert new_entry_id(["1700000000000-aaaa"]) == "1700000000000-bbbb"
