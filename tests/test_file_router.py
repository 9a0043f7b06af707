import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import UploadFile

from helpers import make_record
from mediahub.api.dependencies.identity import get_current_owner
from mediahub.api.dependencies.services import (
    get_file_record_service,
    get_ingestion_service,
    get_lifecycle_service,
)
from mediahub.config.settings import settings
from mediahub.core.exceptions import (
    FileNotFoundException,
    FileTooLargeException,
    InvalidRequestException,
    NoFileException,
    TooManyFilesException,
    UnauthorizedException,
)
from mediahub.enums.file_enums import MediaCategory
from mediahub.main import app
from mediahub.schemas.file.file_record_schemas import (
    BulkDeleteResult,
    DeletedFileSummary,
    FileDeleteResult,
    FileRecordDetail,
    FileRecordRead,
)

client = TestClient(app)

AUTH = {"X-User-Id": "user-1"}

mock_ingestion_service = MagicMock()
mock_lifecycle_service = MagicMock()
mock_record_service = MagicMock()


@pytest.fixture(autouse=True)
def override_services():
    for mock in (mock_ingestion_service, mock_lifecycle_service, mock_record_service):
        mock.reset_mock()
    mock_ingestion_service.ingest = AsyncMock()
    mock_lifecycle_service.delete_file = AsyncMock()
    mock_lifecycle_service.bulk_delete = AsyncMock()
    mock_record_service.get_file_detail = AsyncMock()
    mock_record_service.search_files = AsyncMock()

    app.dependency_overrides[get_ingestion_service] = lambda: mock_ingestion_service
    app.dependency_overrides[get_lifecycle_service] = lambda: mock_lifecycle_service
    app.dependency_overrides[get_file_record_service] = lambda: mock_record_service
    yield
    app.dependency_overrides.clear()


# 测试存活检查
def test_health():
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["data"] == {"status": "ok"}


# 测试缺少身份信息
@pytest.mark.parametrize("method, path", [
    ("get", "/api/v1/files/search"),
    ("get", f"/api/v1/files/{uuid.uuid4()}"),
    ("delete", f"/api/v1/files/{uuid.uuid4()}"),
])
def test_requests_without_identity_are_rejected(method, path):
    response = getattr(client, method)(path)

    assert response.status_code == 401
    body = response.json()
    assert body["code"] == 40100
    assert body["error"] == "UNAUTHORIZED"
    mock_record_service.search_files.assert_not_awaited()
    mock_lifecycle_service.delete_file.assert_not_awaited()


def test_blank_identity_header_is_rejected():
    request = MagicMock()
    request.headers = {"X-User-Id": "   "}

    with pytest.raises(UnauthorizedException):
        get_current_owner(request)


def test_identity_header_is_trimmed():
    request = MagicMock()
    request.headers = {"X-User-Id": " user-9 "}

    assert get_current_owner(request) == "user-9"


# 测试上传
def test_upload_returns_created_record():
    record = FileRecordRead.model_validate(make_record(filename="cat.png"))
    mock_ingestion_service.ingest.return_value = record

    response = client.post(
        "/api/v1/files",
        files={"file": ("cat.png", b"png-bytes", "image/png")},
        headers=AUTH,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["code"] == 201
    assert body["data"]["id"] == str(record.id)
    assert body["data"]["category"] == "image"
    assert body["data"]["preview"] == record.preview

    kwargs = mock_ingestion_service.ingest.call_args.kwargs
    assert kwargs["owner_id"] == "user-1"
    assert kwargs["data"] == b"png-bytes"
    assert kwargs["filename"] == "cat.png"
    assert kwargs["declared_mime_type"] == "image/png"


def test_upload_without_file_part():
    mock_ingestion_service.ingest.side_effect = NoFileException()

    response = client.post("/api/v1/files", headers=AUTH)

    assert response.status_code == 400
    assert response.json()["error"] == "NO_FILE"
    assert mock_ingestion_service.ingest.call_args.kwargs["data"] is None


def test_upload_too_large_error_envelope():
    mock_ingestion_service.ingest.side_effect = FileTooLargeException(100, size=200 * 1024 * 1024)

    response = client.post("/api/v1/files", files={"file": ("big.mp4", b"x", "video/mp4")}, headers=AUTH)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "FILE_TOO_LARGE"
    assert body["code"] == 40021
    assert body["data"]["max_size_mb"] == 100


def _limit_upload_size(monkeypatch, max_mb=1):
    monkeypatch.setattr(settings, "media", settings.media.model_copy(update={"max_file_size_mb": max_mb}))
    return max_mb * 1024 * 1024


def test_oversized_upload_is_rejected_before_reading(monkeypatch):
    max_bytes = _limit_upload_size(monkeypatch)
    read = AsyncMock(return_value=b"")
    monkeypatch.setattr(UploadFile, "read", read)

    response = client.post(
        "/api/v1/files",
        files={"file": ("huge.mp4", b"\x00" * (max_bytes + 1), "video/mp4")},
        headers=AUTH,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "FILE_TOO_LARGE"
    assert body["data"] == {"max_size_mb": 1, "size": max_bytes + 1}
    read.assert_not_awaited()
    mock_ingestion_service.ingest.assert_not_awaited()


def test_upload_read_is_bounded_by_size_limit(monkeypatch):
    max_bytes = _limit_upload_size(monkeypatch)
    read = AsyncMock(return_value=b"clip")
    monkeypatch.setattr(UploadFile, "read", read)
    mock_ingestion_service.ingest.return_value = FileRecordRead.model_validate(make_record(filename="clip.mp4", category="video"))

    response = client.post("/api/v1/files", files={"file": ("clip.mp4", b"clip", "video/mp4")}, headers=AUTH)

    assert response.status_code == 201
    read.assert_awaited_once_with(max_bytes + 1)
    assert mock_ingestion_service.ingest.call_args.kwargs["data"] == b"clip"


# 测试搜索
def test_search_passes_query_parameters():
    mock_record_service.search_files.return_value = {"items": []}

    response = client.get(
        "/api/v1/files/search",
        params={
            "query": "trip",
            "type": "video",
            "mimeType": "video/mp4",
            "minSize": 10,
            "maxSize": 1000,
            "page": 2,
            "limit": 5,
            "sortBy": "size",
            "sortOrder": "asc",
        },
        headers=AUTH,
    )

    assert response.status_code == 200
    owner_id, params = mock_record_service.search_files.call_args.args
    assert owner_id == "user-1"
    assert params.query == "trip"
    assert params.category == MediaCategory.VIDEO
    assert params.mime_type == "video/mp4"
    assert (params.min_size, params.max_size) == (10, 1000)
    assert (params.page, params.limit) == (2, 5)
    assert (params.sort_by, params.sort_order) == ("size", "asc")


def test_search_paging_values_are_clamped_not_rejected():
    mock_record_service.search_files.return_value = {"items": []}

    response = client.get("/api/v1/files/search", params={"page": "first", "limit": "many"}, headers=AUTH)
    assert response.status_code == 200
    _, params = mock_record_service.search_files.call_args.args
    assert (params.page, params.limit) == (1, 20)

    client.get("/api/v1/files/search", params={"page": "-4", "limit": "500"}, headers=AUTH)
    _, params = mock_record_service.search_files.call_args.args
    assert (params.page, params.limit) == (1, 100)


def test_search_with_unknown_type_is_a_validation_error():
    response = client.get("/api/v1/files/search", params={"type": "spreadsheet"}, headers=AUTH)

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["code"] == 40001
    mock_record_service.search_files.assert_not_awaited()


# 测试详情
def test_get_file_detail():
    detail = FileRecordDetail.model_validate(make_record(with_preview=True))
    mock_record_service.get_file_detail.return_value = detail

    response = client.get(f"/api/v1/files/{detail.id}", headers=AUTH)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["has_preview"] is True
    assert data["download_url"] == detail.src
    mock_record_service.get_file_detail.assert_awaited_once_with("user-1", str(detail.id))


def test_get_missing_file():
    mock_record_service.get_file_detail.side_effect = FileNotFoundException()

    response = client.get(f"/api/v1/files/{uuid.uuid4()}", headers=AUTH)

    assert response.status_code == 404
    assert response.json()["error"] == "FILE_NOT_FOUND"


# 测试删除
def test_delete_file():
    record = make_record()
    mock_lifecycle_service.delete_file.return_value = FileDeleteResult(
        deleted_file=DeletedFileSummary.model_validate(record),
        deleted_keys=[record.s3_key],
    )

    response = client.delete(f"/api/v1/files/{record.id}", headers=AUTH)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["deleted_file"]["id"] == str(record.id)
    assert data["deleted_keys"] == [record.s3_key]


# 测试批量删除
def test_bulk_delete():
    ids = [str(uuid.uuid4()), str(uuid.uuid4())]
    mock_lifecycle_service.bulk_delete.return_value = BulkDeleteResult(
        deleted_count=2, s3_objects_deleted=3, deleted_files=[]
    )

    response = client.post("/api/v1/files/bulk-delete", json={"file_ids": ids}, headers=AUTH)

    assert response.status_code == 200
    assert response.json()["data"]["deleted_count"] == 2
    mock_lifecycle_service.bulk_delete.assert_awaited_once_with("user-1", ids)


def test_bulk_delete_with_non_array_ids_is_a_validation_error():
    response = client.post("/api/v1/files/bulk-delete", json={"file_ids": "abc"}, headers=AUTH)

    assert response.status_code == 422
    mock_lifecycle_service.bulk_delete.assert_not_awaited()


def test_bulk_delete_without_ids_reaches_service():
    mock_lifecycle_service.bulk_delete.side_effect = InvalidRequestException(message="file_ids must be a non-empty array.")

    response = client.post("/api/v1/files/bulk-delete", json={}, headers=AUTH)

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_REQUEST"
    mock_lifecycle_service.bulk_delete.assert_awaited_once_with("user-1", None)


def test_bulk_delete_too_many():
    mock_lifecycle_service.bulk_delete.side_effect = TooManyFilesException(max_files=100, received=101)

    response = client.post("/api/v1/files/bulk-delete", json={"file_ids": ["x"] * 101}, headers=AUTH)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "TOO_MANY_FILES"
    assert body["data"] == {"max_files": 100, "received": 101}


# 测试未处理异常
def test_unexpected_error_is_hidden_outside_dev():
    mock_record_service.get_file_detail.side_effect = RuntimeError("database exploded")
    lenient_client = TestClient(app, raise_server_exceptions=False)

    response = lenient_client.get(f"/api/v1/files/{uuid.uuid4()}", headers=AUTH)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "SERVER_ERROR"
    assert body["data"] is None
