import asyncio
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from helpers import PUBLIC_BASE
from mediahub.core.exceptions import StorageFailureException
from mediahub.services.file.file_service import FileService


def test_upload_returns_public_url(file_service, fake_storage):
    url = asyncio.run(file_service.upload_bytes("uploads/u1/2024-01-01/abc-cat.png", b"png", "image/png"))

    assert url == f"{PUBLIC_BASE}/uploads/u1/2024-01-01/abc-cat.png"
    assert fake_storage.objects["uploads/u1/2024-01-01/abc-cat.png"] == b"png"
    assert fake_storage.content_types["uploads/u1/2024-01-01/abc-cat.png"] == "image/png"


def test_upload_failure_becomes_storage_failure(file_service, fake_storage):
    fake_storage.fail_put_when.add("broken")

    with pytest.raises(StorageFailureException) as exc_info:
        asyncio.run(file_service.upload_bytes("uploads/u1/2024-01-01/abc-broken.png", b"png", "image/png"))

    assert exc_info.value.status_code == 502
    assert exc_info.value.error == "STORAGE_FAILURE"
    assert fake_storage.objects == {}


def test_transient_client_error_is_retried():
    client = MagicMock()
    client.put_object.side_effect = [
        ClientError({"Error": {"Code": "SlowDown", "Message": "Please reduce your request rate."}}, "PutObject"),
        {"ETag": '"abc"'},
    ]
    client.build_final_url.side_effect = lambda key: f"https://cdn.example.com/{key}"
    service = FileService(client=client)

    url = asyncio.run(service.upload_bytes("k", b"data", "audio/mpeg"))

    assert url == "https://cdn.example.com/k"
    assert client.put_object.call_count == 2


def test_delete_files_isolates_failures(file_service, fake_storage):
    fake_storage.objects.update({"a": b"1", "b": b"2", "c": b"3"})
    fake_storage.fail_remove.add("b")

    failed = asyncio.run(file_service.delete_files(["a", "b", "c"]))

    assert failed == ["b"]
    assert set(fake_storage.objects) == {"b"}


def test_delete_file_raises_on_failure(file_service, fake_storage):
    fake_storage.fail_remove.add("a")

    with pytest.raises(StorageFailureException):
        asyncio.run(file_service.delete_file("a"))


def test_batch_delete_splits_into_batches_of_1000(file_service, fake_storage):
    keys = [f"uploads/u1/2024-01-01/{i:04d}-f.jpg" for i in range(2500)]
    fake_storage.objects.update({key: b"" for key in keys})

    deleted = asyncio.run(file_service.delete_files_in_batches(keys))

    assert deleted == 2500
    assert sorted(len(batch) for batch in fake_storage.batches) == [500, 1000, 1000]
    assert fake_storage.objects == {}


def test_failed_batch_does_not_stop_the_others(file_service, fake_storage):
    keys = [f"uploads/u1/2024-01-01/{i:04d}-f.jpg" for i in range(2500)]
    fake_storage.fail_batch_containing.add(keys[1500])

    deleted = asyncio.run(file_service.delete_files_in_batches(keys))

    assert deleted == 1500
    assert len(fake_storage.batches) == 3


def test_batch_delete_of_nothing_is_a_no_op(file_service, fake_storage):
    assert asyncio.run(file_service.delete_files_in_batches([])) == 0
    assert fake_storage.batches == []
