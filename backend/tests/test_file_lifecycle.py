"""Tests for the file lifecycle manager (disk + record store orchestration)."""
import base64
from unittest.mock import AsyncMock

import pytest

from file_assets.errors import (
    RecordNotFound,
    RecordStoreError,
    StorageNotFoundError,
    StorageWriteError,
    UnknownFieldError,
)
from file_assets.services.file_lifecycle import build_data_uri, merge_fields


def decode_data_uri(file_text: str) -> tuple[str, bytes]:
    header, payload = file_text.split(",", 1)
    return header[len("data:"):].split(";", 1)[0], base64.b64decode(payload)


async def test_create_builds_data_uri(lifecycle):
    record = await lifecycle.create(b"hello", "text/plain", "user-1", original_name="hello.txt")

    assert record.file_text == "data:text/plain;base64,aGVsbG8="


async def test_create_defaults_views_to_zero(lifecycle):
    record = await lifecycle.create(b"hello", "text/plain", "user-1")

    assert record.views == "0"
    assert record.tags is None
    assert record.user_ref is None


async def test_create_stores_fields_and_owner(lifecycle, store):
    record = await lifecycle.create(
        b"\x89PNG",
        "image/png",
        "user-1",
        original_name="pic.png",
        fields={"tags": ["a", "b"], "views": "7", "user_ref": "ref-9"},
    )

    assert record.id is not None
    assert len(record.uuid) == 36
    assert record.user_id == "user-1"
    assert record.tags == ["a", "b"]
    assert record.views == "7"
    assert record.user_ref == "ref-9"
    assert record.file_name.endswith(".png")
    assert record.file_path == f"/uploads/{record.file_name}"
    assert record.mime_type == "image/png"
    assert await store.read(record.file_name) == b"\x89PNG"


async def test_create_generates_distinct_file_names(lifecycle):
    records = [await lifecycle.create(b"same", "text/plain", "user-1") for _ in range(20)]

    assert len({r.file_name for r in records}) == 20
    assert len({r.uuid for r in records}) == 20


async def test_create_rejects_unknown_fields_before_writing(lifecycle, store):
    with pytest.raises(UnknownFieldError):
        await lifecycle.create(b"x", "text/plain", "user-1", fields={"user_id": "someone-else"})

    assert await store.list_names() == []


async def test_file_text_matches_disk_after_create_and_update(lifecycle, store):
    record = await lifecycle.create(b"first", "text/plain", "user-1")
    mime, payload = decode_data_uri(record.file_text)
    assert (mime, payload) == ("text/plain", await store.read(record.file_name))

    updated = await lifecycle.update(record.uuid, b"\x00\x01second", "application/octet-stream")
    mime, payload = decode_data_uri(updated.file_text)
    assert mime == "application/octet-stream"
    assert payload == await store.read(updated.file_name) == b"\x00\x01second"


async def test_update_replaces_content_in_place(lifecycle, store, gateway):
    record = await gateway.create({
        "uuid": "11111111-1111-1111-1111-111111111111",
        "file_name": "abc123.txt",
        "file_path": "/uploads/abc123.txt",
        "file_text": build_data_uri(b"hello", "text/plain"),
        "user_id": "user-1",
    })
    (store.base_path / "abc123.txt").write_bytes(b"hello")

    updated = await lifecycle.update(record.uuid, b"world", "text/plain")

    assert await store.read("abc123.txt") == b"world"
    assert updated.file_name == "abc123.txt"
    assert updated.file_text == "data:text/plain;base64,d29ybGQ="


async def test_update_preserves_identity_and_merges_fields(lifecycle):
    record = await lifecycle.create(
        b"v1", "text/plain", "user-1", fields={"tags": "draft", "user_ref": "ref-1"}
    )
    uuid, file_name, file_path = record.uuid, record.file_name, record.file_path

    updated = await lifecycle.update(uuid, b"v2", "text/plain", fields={"tags": "final"})

    assert updated.uuid == uuid
    assert updated.file_name == file_name
    assert updated.file_path == file_path
    assert updated.user_id == "user-1"
    assert updated.tags == "final"
    assert updated.user_ref == "ref-1"
    assert updated.views == "0"


async def test_update_unknown_uuid_raises_record_not_found(lifecycle, store):
    store.replace = AsyncMock()

    with pytest.raises(RecordNotFound):
        await lifecycle.update("missing", b"x", "text/plain")
    store.replace.assert_not_awaited()


async def test_update_with_missing_blob_leaves_record_untouched(lifecycle, store, gateway):
    record = await lifecycle.create(b"keep", "text/plain", "user-1")
    (store.base_path / record.file_name).unlink()

    with pytest.raises(StorageWriteError):
        await lifecycle.update(record.uuid, b"new", "text/plain")

    reloaded = await gateway.get_by_uuid(record.uuid)
    assert reloaded.file_text == build_data_uri(b"keep", "text/plain")


async def test_delete_removes_blob_and_record(lifecycle, store, gateway):
    record = await lifecycle.create(b"bye", "text/plain", "user-1")

    deleted = await lifecycle.delete(record.uuid)

    assert deleted.uuid == record.uuid
    assert await gateway.get_by_uuid(record.uuid) is None
    with pytest.raises(StorageNotFoundError):
        await store.read(record.file_name)
    with pytest.raises(RecordNotFound):
        await lifecycle.get(record.uuid)


async def test_delete_unknown_uuid_skips_disk(lifecycle, store):
    store.delete = AsyncMock()

    with pytest.raises(RecordNotFound):
        await lifecycle.delete("missing")
    store.delete.assert_not_awaited()


async def test_delete_disk_failure_keeps_record(lifecycle, store, gateway):
    record = await lifecycle.create(b"stay", "text/plain", "user-1")
    store.delete = AsyncMock(side_effect=StorageWriteError("disk failure"))

    with pytest.raises(StorageWriteError):
        await lifecycle.delete(record.uuid)

    assert await gateway.get_by_uuid(record.uuid) is not None


async def test_create_record_failure_leaves_orphan_blob(lifecycle, store, gateway):
    gateway.create = AsyncMock(side_effect=RecordStoreError("store down"))

    with pytest.raises(RecordStoreError):
        await lifecycle.create(b"orphan", "text/plain", "user-1", original_name="o.txt")

    names = await store.list_names()
    assert len(names) == 1
    assert await store.read(names[0]) == b"orphan"
    assert await gateway.list_file_names() == set()


async def test_get_by_user_returns_only_owned(lifecycle):
    await lifecycle.create(b"a", "text/plain", "user-1")
    await lifecycle.create(b"b", "text/plain", "user-1")
    await lifecycle.create(b"c", "text/plain", "user-2")

    owned = await lifecycle.get_by_user("user-1")

    assert len(owned) == 2
    assert {r.user_id for r in owned} == {"user-1"}
    assert await lifecycle.get_by_user("nobody") == []


async def test_read_content(lifecycle):
    record = await lifecycle.create(b"payload", "text/plain", "user-1")

    loaded, content = await lifecycle.read_content(record.uuid)

    assert loaded.uuid == record.uuid
    assert content == b"payload"


def test_build_data_uri_defaults_mime_type():
    assert build_data_uri(b"", None) == "data:application/octet-stream;base64,"


def test_merge_fields_policy():
    assert merge_fields(None, creating=True) == {"views": "0"}
    assert merge_fields(None, creating=False) == {}
    assert merge_fields({"views": "3", "tags": None}, creating=True) == {"views": "3"}
    assert merge_fields({"user_ref": "r"}, creating=False) == {"user_ref": "r"}
    with pytest.raises(UnknownFieldError):
        merge_fields({"file_name": "x"}, creating=False)


async def test_delete_with_blob_already_missing_removes_record(lifecycle, store, gateway):
    record = await lifecycle.create(b"gone", "text/plain", "user-1")
    (store.base_path / record.file_name).unlink()

    await lifecycle.delete(record.uuid)

    assert await gateway.get_by_uuid(record.uuid) is None


async def test_create_disk_failure_skips_record(lifecycle, store, gateway):
    store.save = AsyncMock(side_effect=StorageWriteError("disk full"))
    gateway.create = AsyncMock()

    with pytest.raises(StorageWriteError):
        await lifecycle.create(b"x", "text/plain", "user-1")
    gateway.create.assert_not_awaited()


async def test_update_record_failure_keeps_new_bytes_and_old_record(lifecycle, store, gateway):
    record = await lifecycle.create(b"old", "text/plain", "user-1", fields={"tags": "v1"})
    gateway.update = AsyncMock(side_effect=RecordStoreError("store down"))

    with pytest.raises(RecordStoreError):
        await lifecycle.update(record.uuid, b"new", "text/plain", fields={"tags": "v2"})

    assert await store.read(record.file_name) == b"new"
    reloaded = await gateway.get_by_uuid(record.uuid)
    assert reloaded.file_text == build_data_uri(b"old", "text/plain")
    assert reloaded.tags == "v1"
