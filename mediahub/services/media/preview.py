import io
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

from PIL import Image, UnidentifiedImageError

from mediahub.config.config_settings.config_schema import MediaConfig
from mediahub.core.logger import get_logger
from mediahub.enums.file_enums import DerivativeRole, MediaCategory
from mediahub.schemas.file.media_schemas import DerivedPreview, MediaMetadata

logger = get_logger(__name__)

IMAGE_ERRORS = (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError)


class PreviewDeriver:
    """
    按媒体类别生成预览图或视频封面。

    每个可预览的类别对应一个策略，策略表在初始化时固定:
    - image: 超过边界时等比缩小到 720x720 以内并编码为 JPEG，否则不派生
    - video: ffmpeg 截取指定时间点的帧；失败时尝试提取内嵌封面
    - audio: 从不派生，预览直接使用原文件 URL

    返回 None 表示没有派生对象。所有方法都是同步阻塞的。
    """

    def __init__(self, media_config: MediaConfig):
        self.media_config = media_config
        self._strategies: Dict[MediaCategory, Callable[[bytes, MediaMetadata], Optional[DerivedPreview]]] = {
            MediaCategory.IMAGE: self._derive_image_preview,
            MediaCategory.VIDEO: self._derive_video_poster,
            MediaCategory.AUDIO: self._derive_nothing,
        }

    @property
    def bounds(self):
        return self.media_config.preview_max_width, self.media_config.preview_max_height

    def derive(self, category: MediaCategory, data: bytes, metadata: Optional[MediaMetadata] = None) -> Optional[DerivedPreview]:
        strategy = self._strategies.get(category)
        if strategy is None:
            raise ValueError(f"No preview strategy for category '{category}'")
        return strategy(data, metadata or MediaMetadata())

    # --- 策略 (Strategies) ---

    def _derive_nothing(self, data: bytes, metadata: MediaMetadata) -> Optional[DerivedPreview]:
        return None

    def _derive_image_preview(self, data: bytes, metadata: MediaMetadata) -> Optional[DerivedPreview]:
        max_width, max_height = self.bounds
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                if width <= max_width and height <= max_height:
                    return None
                return self._encode_jpeg(img, DerivativeRole.PREVIEW)
        except IMAGE_ERRORS as e:
            logger.warning(f"Image preview generation failed, falling back to original: {e}")
            return None

    def _derive_video_poster(self, data: bytes, metadata: MediaMetadata) -> Optional[DerivedPreview]:
        # 输入和输出文件都放在同一个临时目录里，退出时一并删除
        try:
            with tempfile.TemporaryDirectory(prefix="mediahub-poster-") as tmp_dir:
                work_dir = Path(tmp_dir)
                input_path = work_dir / "input"
                input_path.write_bytes(data)

                poster = self._capture_frame(input_path, work_dir / "poster.jpg")
                if poster is None:
                    poster = self._extract_embedded_thumbnail(input_path, work_dir / "embedded.png")
                return poster
        except OSError as e:
            logger.warning(f"Video poster generation failed: {e}")
            return None

    # --- 内部辅助方法 (Internal Helpers) ---

    def _capture_frame(self, input_path: Path, output_path: Path) -> Optional[DerivedPreview]:
        max_width, max_height = self.bounds
        command = [
            self.media_config.ffmpeg_path,
            "-y",
            "-ss", self.media_config.video_screenshot_time,
            "-i", str(input_path),
            "-frames:v", "1",
            "-vf", f"scale=w={max_width}:h={max_height}:force_original_aspect_ratio=decrease",
            "-q:v", str(self.media_config.ffmpeg_quality),
            str(output_path),
        ]
        if not self._run_ffmpeg(command, "frame capture"):
            return None
        if not output_path.exists() or output_path.stat().st_size == 0:
            logger.warning("ffmpeg frame capture produced no output")
            return None

        poster_bytes = output_path.read_bytes()
        width = height = None
        try:
            with Image.open(io.BytesIO(poster_bytes)) as img:
                width, height = img.size
        except IMAGE_ERRORS:
            pass
        return DerivedPreview(role=DerivativeRole.POSTER, data=poster_bytes, width=width, height=height)

    def _extract_embedded_thumbnail(self, input_path: Path, output_path: Path) -> Optional[DerivedPreview]:
        # -map 0:v -map -0:V 只保留 attached_pic 流 (容器内嵌的封面图)
        command = [
            self.media_config.ffmpeg_path,
            "-y",
            "-i", str(input_path),
            "-map", "0:v",
            "-map", "-0:V",
            "-frames:v", "1",
            str(output_path),
        ]
        if not self._run_ffmpeg(command, "embedded thumbnail extraction"):
            return None
        if not output_path.exists() or output_path.stat().st_size == 0:
            return None

        try:
            with Image.open(output_path) as img:
                return self._encode_jpeg(img, DerivativeRole.POSTER)
        except IMAGE_ERRORS as e:
            logger.warning(f"Embedded thumbnail could not be decoded: {e}")
            return None

    def _run_ffmpeg(self, command: List[str], purpose: str) -> bool:
        try:
            subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.media_config.tool_timeout_seconds,
            )
            return True
        except subprocess.CalledProcessError as e:
            logger.warning(f"ffmpeg {purpose} failed with exit code {e.returncode}: {(e.stderr or '').strip()[-500:]}")
        except subprocess.TimeoutExpired:
            logger.warning(f"ffmpeg {purpose} timed out after {self.media_config.tool_timeout_seconds}s")
        except OSError as e:
            logger.warning(f"ffmpeg {purpose} could not be run: {e}")
        return False

    def _encode_jpeg(self, img: Image.Image, role: DerivativeRole) -> DerivedPreview:
        """等比缩小到边界以内 (不放大)，转为 RGB 后编码为 JPEG"""
        img.thumbnail(self.bounds, Image.LANCZOS)
        if img.mode != "RGB":
            img = img.convert("RGB")

        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=self.media_config.preview_jpeg_quality)
        width, height = img.size
        return DerivedPreview(role=role, data=buffer.getvalue(), width=width, height=height)
