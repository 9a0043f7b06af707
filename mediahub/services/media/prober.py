import io
import json
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

try:
    import magic
except ImportError as e:
    magic = None
    _MAGIC_IMPORT_ERROR = e
else:
    _MAGIC_IMPORT_ERROR = None

from mediahub.config.config_settings.config_schema import MediaConfig
from mediahub.core.logger import get_logger
from mediahub.schemas.file.media_schemas import MediaMetadata

logger = get_logger(__name__)

if magic is None:
    # libmagic 缺失时退回到 Pillow 的格式识别
    logger.warning(f"libmagic signature sniffing unavailable, falling back to Pillow: {_MAGIC_IMPORT_ERROR}")

SNIFF_BYTES = 2048


class MediaProber:
    """
    从原始字节中提取 MIME 类型、宽高和时长。

    探测是尽力而为的: 任何一步失败都只会让对应字段缺失，probe() 永远不会抛出异常。
    所有方法都是同步阻塞的，异步调用方需要放进线程池执行。
    """

    def __init__(self, media_config: MediaConfig):
        self.media_config = media_config

    def detect_mime_type(self, data: bytes) -> Optional[str]:
        """根据文件签名检测 MIME 类型，检测不出具体类型时返回 None"""
        mime_type = self._sniff_with_magic(data)
        if mime_type and mime_type != "application/octet-stream":
            return mime_type

        header = self._read_image_header(data)
        if header is not None:
            return header[2]
        return None

    def probe(self, data: bytes, mime_type: Optional[str] = None) -> MediaMetadata:
        """
        先用 Pillow 在内存中读取图片头部拿到宽高，失败时才把数据写入临时目录交给 ffprobe。
        """
        if not data:
            return MediaMetadata(mime_type=mime_type)

        mime_type = mime_type or self.detect_mime_type(data)

        header = self._read_image_header(data)
        if header is not None:
            width, height, image_mime = header
            return MediaMetadata(mime_type=mime_type or image_mime, width=width, height=height)

        width, height, duration = self._probe_with_ffprobe(data)
        return MediaMetadata(mime_type=mime_type, width=width, height=height, duration=duration)

    # --- 内部辅助方法 (Internal Helpers) ---

    def _sniff_with_magic(self, data: bytes) -> Optional[str]:
        if magic is None:
            return None
        try:
            return magic.from_buffer(data[:SNIFF_BYTES], mime=True)
        except magic.MagicException as e:
            logger.debug(f"libmagic could not identify buffer: {e}")
            return None

    def _read_image_header(self, data: bytes) -> Optional[Tuple[int, int, Optional[str]]]:
        try:
            # Image.open 是惰性的，只解析头部，不会解码像素
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                return width, height, Image.MIME.get(img.format or "")
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError):
            return None

    def _probe_with_ffprobe(self, data: bytes) -> Tuple[Optional[int], Optional[int], Optional[float]]:
        command_base = [
            self.media_config.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
        ]

        try:
            # TemporaryDirectory 在任何退出路径上都会清理输入文件
            with tempfile.TemporaryDirectory(prefix="mediahub-probe-") as tmp_dir:
                input_path = Path(tmp_dir) / "input"
                input_path.write_bytes(data)
                result = subprocess.run(
                    [*command_base, str(input_path)],
                    capture_output=True,
                    text=True,
                    check=True,
                    timeout=self.media_config.tool_timeout_seconds,
                )
            probe_data = json.loads(result.stdout or "{}")
        except subprocess.CalledProcessError as e:
            logger.warning(f"ffprobe failed with exit code {e.returncode}: {(e.stderr or '').strip()}")
            return None, None, None
        except subprocess.TimeoutExpired:
            logger.warning(f"ffprobe timed out after {self.media_config.tool_timeout_seconds}s")
            return None, None, None
        except (OSError, ValueError) as e:
            logger.warning(f"ffprobe could not be run or parsed: {e}")
            return None, None, None

        return self._parse_probe_data(probe_data)

    @staticmethod
    def _parse_probe_data(probe_data: dict) -> Tuple[Optional[int], Optional[int], Optional[float]]:
        width = height = None
        for stream in probe_data.get("streams", []):
            if stream.get("width") and stream.get("height"):
                width, height = int(stream["width"]), int(stream["height"])
                break

        duration = None
        raw_duration = (probe_data.get("format") or {}).get("duration")
        if raw_duration not in (None, "N/A"):
            try:
                duration = float(raw_duration)
            except (TypeError, ValueError):
                duration = None
        return width, height, duration
