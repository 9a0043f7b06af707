import os
from typing import Optional

from mediahub.enums.file_enums import MediaCategory

OCTET_STREAM = "application/octet-stream"

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "bmp", "tiff", "svg"})
VIDEO_EXTENSIONS = frozenset({"mp4", "avi", "mov", "wmv", "flv", "webm", "mkv", "3gp"})
AUDIO_EXTENSIONS = frozenset({"mp3", "wav", "ogg", "flac", "aac", "m4a", "wma"})
DOCUMENT_EXTENSIONS = frozenset({"pdf", "doc", "docx", "txt", "rtf", "xls", "xlsx", "ppt", "pptx"})

# 按顺序匹配，命中即返回
EXTENSION_CATEGORIES = (
    (IMAGE_EXTENSIONS, MediaCategory.IMAGE),
    (VIDEO_EXTENSIONS, MediaCategory.VIDEO),
    (AUDIO_EXTENSIONS, MediaCategory.AUDIO),
    (DOCUMENT_EXTENSIONS, MediaCategory.DOCUMENT),
)

MIME_PREFIX_CATEGORIES = (
    ("image/", MediaCategory.IMAGE),
    ("video/", MediaCategory.VIDEO),
    ("audio/", MediaCategory.AUDIO),
)

DOCUMENT_MIME_PREFIXES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats",
    "application/vnd.ms-excel",
    "application/vnd.ms-powerpoint",
    "application/rtf",
    "text/",
)


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """去掉参数部分并转为小写，缺失时视为 application/octet-stream"""
    if not mime_type:
        return OCTET_STREAM
    return mime_type.split(";", 1)[0].strip().lower() or OCTET_STREAM


def get_extension(filename: Optional[str]) -> str:
    if not filename:
        return ""
    return os.path.splitext(filename)[1].lstrip(".").lower()


def classify_media(mime_type: Optional[str], filename: Optional[str] = None) -> MediaCategory:
    """
    将 MIME 类型 (以及可选的文件名) 映射为媒体类别。

    1. image/ video/ audio/ 前缀直接决定类别
    2. application/octet-stream 且有文件名时，按扩展名表查找
    3. 文档类 MIME 前缀
    4. 其余一律为 other

    纯函数，不会抛出异常。
    """
    mime = normalize_mime_type(mime_type)

    for prefix, category in MIME_PREFIX_CATEGORIES:
        if mime.startswith(prefix):
            return category

    if mime == OCTET_STREAM and filename:
        extension = get_extension(filename)
        for extensions, category in EXTENSION_CATEGORIES:
            if extension in extensions:
                return category

    if mime.startswith(DOCUMENT_MIME_PREFIXES):
        return MediaCategory.DOCUMENT

    return MediaCategory.OTHER
