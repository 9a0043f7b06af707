# mediahub/utils/url_builder.py

from typing import Optional

from mediahub.config.config_settings.config_schema import StorageCapabilities
from mediahub.core.logger import logger


def build_public_storage_url(
    object_name: str,
    cdn_base_url: Optional[str],
    public_base_url: Optional[str],  # 来自 S3Params.public_endpoint
    internal_base_url: Optional[str],  # 来自 S3Params.endpoint
    bucket_name: str,
    capabilities: StorageCapabilities
) -> Optional[str]:
    """
    根据传入的上下文构建公共 URL，不读取任何全局设置。

    URL 生成逻辑:
    1. 【CDN】如果配置了 cdn_base_url 且 capabilities 允许，优先使用。
    2. 【公网 Endpoint】如果配置了 public_base_url，根据 path_style 使用。
    3. 【内网 Endpoint】作为回退，根据 path_style 使用。
    4. 【AWS 默认】以上都没有时，生成 virtual-hosted 风格的 S3 URL。
    """
    if not object_name:
        return None

    key = object_name.lstrip('/')

    # --- 优先级 1: CDN ---
    if capabilities.supports_cdn_rewrite and cdn_base_url:
        # CDN URL 总是 "path" 风格 (e.g., cdn.com/object_name)
        return f"{cdn_base_url.rstrip('/')}/{key}"

    # --- 优先级 2: 公网 Endpoint ---
    if public_base_url:
        base_url = public_base_url.rstrip('/')
        if capabilities.path_style == "path":
            return f"{base_url}/{bucket_name}/{key}"
        return f"{base_url}/{key}"

    # --- 优先级 3: 回退到内网 Endpoint ---
    if internal_base_url:
        logger.warning(
            f"Building public URL for {object_name} using internal endpoint. "
            f"Consider setting 'public_endpoint' for this client."
        )
        base_url = internal_base_url.rstrip('/')
        if capabilities.path_style == "path":
            return f"{base_url}/{bucket_name}/{key}"
        return f"{base_url}/{key}"

    # --- 优先级 4: 标准 AWS S3 ---
    logger.debug(f"Building default AWS S3 URL for {object_name}")
    return f"https://{bucket_name}.s3.amazonaws.com/{key}"
