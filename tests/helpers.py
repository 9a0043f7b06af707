import io
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Set

from PIL import Image

from mediahub.infra.db.repository_factory import RepositoryFactory
from mediahub.infra.storage.storage_interface import StorageClientInterface
from mediahub.models.files.file_record import FileRecord

PUBLIC_BASE = "https://media.example.com/media-test"


class FakeStorageClient(StorageClientInterface):
    """内存中的对象存储，可以按对象键注入失败"""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.fail_put_when: Set[str] = set()
        self.fail_remove: Set[str] = set()
        self.fail_batch_containing: Set[str] = set()
        self.batches: List[List[str]] = []

    def put_object(self, object_name, data, length, content_type):
        if any(marker in object_name for marker in self.fail_put_when):
            raise RuntimeError(f"put failed for {object_name}")
        self.objects[object_name] = data.read()
        self.content_types[object_name] = content_type
        return {"ETag": '"fake-etag"'}

    def remove_object(self, object_name):
        if object_name in self.fail_remove:
            raise RuntimeError(f"remove failed for {object_name}")
        self.objects.pop(object_name, None)

    def remove_objects(self, object_names):
        self.batches.append(list(object_names))
        if self.fail_batch_containing.intersection(object_names):
            raise RuntimeError("batch delete failed")
        for name in object_names:
            self.objects.pop(name, None)
        return {"deleted": list(object_names), "errors": []}

    def build_final_url(self, object_name):
        return f"{PUBLIC_BASE}/{object_name}"


def make_image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height)).save(buffer, format=fmt)
    return buffer.getvalue()


def make_record(
        owner: str = "user-1",
        filename: str = "photo.jpg",
        category: str = "image",
        size: int = 1024,
        with_preview: bool = True,
        uploaded_at: datetime = None,
        mime_type: str = None,
) -> FileRecord:
    file_id = uuid.uuid4().hex
    base_path = f"uploads/{owner}/2024-05-01"
    s3_key = f"{base_path}/{file_id}-{filename}"
    src = f"{PUBLIC_BASE}/{s3_key}"
    role = "poster" if category == "video" else "preview"
    preview = f"{PUBLIC_BASE}/{base_path}/{role}-{file_id}.jpg" if with_preview else src
    default_mime = {"image": "image/jpeg", "video": "video/mp4", "audio": "audio/mpeg"}
    return FileRecord(
        filename=filename,
        mime_type=mime_type or default_mime.get(category, "application/octet-stream"),
        category=category,
        size=size,
        s3_key=s3_key,
        src=src,
        preview=preview,
        details={"width": 100, "height": 100, "duration": None, "src": src, "preview": preview},
        uploaded_by=owner,
        uploaded_at=uploaded_at or datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


def preview_key_of(record: FileRecord) -> str:
    return record.preview[len(PUBLIC_BASE) + 1:]


async def seed_records(repo_factory: RepositoryFactory, records: List[FileRecord]) -> List[FileRecord]:
    session = repo_factory.get_session()
    session.add_all(records)
    await session.commit()
    return records


def timeline(count: int, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)) -> List[datetime]:
    return [start + timedelta(minutes=i) for i in range(count)]
