from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class StorageCapabilities(BaseModel):
    """
    描述对象存储服务的特性与能力集。
    默认值代表一个“功能齐全”的 S3 兼容服务 (如 MinIO, AWS S3)。
    """

    supports_acl: bool = Field(
        default=True,
        description="是否支持对象 ACL 控制 (S3/MinIO: True, R2: False)"
    )

    supports_bucket_creation: bool = Field(
        default=True,
        description="是否允许在启动时通过 API 检查并创建 bucket"
    )

    supports_cdn_rewrite: bool = Field(
        default=True,
        description="是否支持将内网URL重写为CDN URL"
    )

    signature_version: Literal["v2", "v4"] = Field(
        default="v4",
        description="签名算法版本 (v4 是现代标准)"
    )

    path_style: Literal["auto", "path", "virtual"] = Field(
        default="auto",
        description="默认寻址风格 (auto 适用于 S3/R2，本地 MinIO 可能需要手动设为 'path')"
    )


class S3Params(BaseModel):
    """
    S3 兼容对象存储的客户端参数。
    所有上传、删除路径共用这一份配置。
    """

    # --- 核心连接配置 ---

    endpoint: Optional[str] = None
    """
    服务地址 (不含 http/https)。
    - AWS S3: 留空 (None)，Boto3 会根据 region 自动生成。
    - MinIO/OSS/COS: 必须填写, e.g., 'your-minio:9000'
    """

    region: str = "us-east-1"
    access_key: str
    secret_key: str
    bucket_name: str
    secure: bool = True

    default_acl: Optional[str] = "public-read"
    """
    上传对象时使用的默认 ACL。
    - Cloudflare R2: 必须设置为 None
    """

    # --- 公网/CDN 访问配置 ---

    public_endpoint: Optional[str] = None
    """公网访问端点 (不含 http/https, 不含 bucket)"""

    cdn_base_url: Optional[str] = None
    """CDN 基础地址 (含协议, 不含 bucket), e.g. https://cdn.example.com"""

    secure_cdn: bool = True

    connect_timeout: int = 60
    read_timeout: int = 60

    capabilities: StorageCapabilities = Field(
        default_factory=StorageCapabilities,
        description="描述当前存储服务的特性与行为差异"
    )


class MediaConfig(BaseModel):
    """上传与预览派生相关的限制和外部工具配置"""

    max_file_size_mb: int = Field(100, description="单个文件允许的最大大小 (MB)")
    upload_key_prefix: str = Field("uploads", description="原始文件对象键的顶层前缀")

    preview_max_width: int = 720
    preview_max_height: int = 720
    preview_jpeg_quality: int = Field(85, ge=1, le=95)

    video_screenshot_time: str = Field("00:00:01", description="视频封面截帧的时间点")
    ffmpeg_quality: int = Field(2, description="ffmpeg -q:v 参数, 越小质量越高")
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    tool_timeout_seconds: int = Field(30, description="ffmpeg/ffprobe 的超时时间 (秒)")

    max_bulk_delete: int = Field(100, description="一次批量删除允许的最大文件数")
    delete_batch_size: int = Field(1000, le=1000, description="对象存储批量删除的每批键数量")
    upload_concurrency: int = 5

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    api_prefix: str = "/api/v1"
    env: str = "dev"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class DatabaseConfig(BaseModel):
    url: str
    echo: bool = False


class LoggingConfig(BaseModel):
    enable_file: bool = True
    log_dir: str = "../logs"
    rotation: str = "1 week"
    retention: str = "1 month"


class SecurityConfig(BaseModel):
    owner_header: str = Field(
        "X-User-Id",
        description="上游身份网关写入已认证用户 ID 的请求头"
    )


# ========================================================================================
#
#   所有配置模型都要写在APPconfig上方
#
# ========================================================================================
class AppConfig(BaseModel):
    server: ServerConfig
    database: DatabaseConfig
    logging: LoggingConfig
    storage: S3Params
    media: MediaConfig = Field(default_factory=MediaConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
