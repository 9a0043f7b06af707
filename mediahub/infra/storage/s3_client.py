from typing import BinaryIO, Dict, List, Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError

from mediahub.config.config_settings.config_schema import S3Params
from mediahub.core.logger import logger
from mediahub.infra.storage.storage_interface import StorageClientInterface
from mediahub.utils.url_builder import build_public_storage_url


class S3CompatibleClient(StorageClientInterface):
    def __init__(self, s3_conf: S3Params):
        self.s3_conf = s3_conf
        self.capabilities = self.s3_conf.capabilities
        self.endpoint_url = self._get_base_url()
        self.bucket_name = self.s3_conf.bucket_name
        self.public_base_url = self._get_public_base_url()

        # 根据 StorageCapabilities 设置 BotoConfig
        # 1. 寻址风格: Boto3 的 'auto' 对应的是 None
        addressing_style = self.capabilities.path_style
        if addressing_style == 'auto':
            addressing_style = None

        # 2. 签名版本: "v4" -> "s3v4", "v2" -> "s3" (legacy)
        signature_version_map = {"v4": "s3v4", "v2": "s3"}
        signature_version = signature_version_map.get(self.capabilities.signature_version, "s3v4")

        client_config = BotoConfig(
            signature_version=signature_version,
            s3={'addressing_style': addressing_style},
            connect_timeout=self.s3_conf.connect_timeout,
            read_timeout=self.s3_conf.read_timeout
        )

        self.s3 = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.s3_conf.access_key,
            aws_secret_access_key=self.s3_conf.secret_key,
            config=client_config,
            region_name=self.s3_conf.region
        )

        # 仅在 capabilities 允许时才尝试创建 Bucket
        if self.capabilities.supports_bucket_creation:
            self.create_bucket_if_not_exists(self.bucket_name)
        else:
            logger.debug(
                f"[S3 Driver] Skipping bucket check/creation for '{self.bucket_name}' (disabled by capabilities).")

    def _get_base_url(self) -> Optional[str]:
        # endpoint 为 None 时使用 AWS S3 默认地址
        if not self.s3_conf.endpoint:
            return None
        protocol = "https" if self.s3_conf.secure else "http"
        return f"{protocol}://{self.s3_conf.endpoint}"

    def _get_public_base_url(self) -> Optional[str]:
        if not self.s3_conf.public_endpoint:
            return None
        protocol = "https" if self.s3_conf.secure_cdn else "http"
        return f"{protocol}://{self.s3_conf.public_endpoint}"

    def build_final_url(self, object_name: str) -> str:
        """
        构建最终可访问的 URL (可能是 CDN URL)
        """
        return build_public_storage_url(
            object_name=object_name,
            cdn_base_url=self.s3_conf.cdn_base_url,
            public_base_url=self.public_base_url,
            internal_base_url=self.endpoint_url,
            bucket_name=self.bucket_name,
            capabilities=self.capabilities
        )

    def put_object(self, object_name: str, data: BinaryIO, length: int, content_type: str) -> Dict:
        """底层 put_object 方法"""
        logger.info(f"[S3 Driver] Putting object: {object_name} ({length} bytes)")

        params = {
            "Bucket": self.bucket_name,
            "Key": object_name,
            "Body": data,
            "ContentLength": length,
            "ContentType": content_type,
        }

        if self.capabilities.supports_acl and self.s3_conf.default_acl:
            params["ACL"] = self.s3_conf.default_acl
            logger.debug(f"[S3 Driver] Applying ACL '{self.s3_conf.default_acl}' for {object_name}.")

        response = self.s3.put_object(**params)

        # boto3 返回的 ETag 带有双引号，我们需要移除它们
        etag = response.get('ETag')
        if etag:
            response['ETag'] = etag.strip('"')
        return response

    def remove_object(self, object_name: str):
        """底层 remove_object 方法"""
        logger.info(f"[S3 Driver] Removing object: {object_name}")
        return self.s3.delete_object(Bucket=self.bucket_name, Key=object_name)

    def remove_objects(self, object_names: List[str]) -> Dict[str, List]:
        """
        使用 DeleteObjects 一次删除一批对象。
        S3 对单次请求的键数量上限为 1000，由调用方负责分批。
        """
        if not object_names:
            return {"deleted": [], "errors": []}

        logger.info(f"[S3 Driver] Removing {len(object_names)} objects in one request.")
        response = self.s3.delete_objects(
            Bucket=self.bucket_name,
            Delete={
                "Objects": [{"Key": name} for name in object_names],
                "Quiet": False,
            },
        )
        deleted = [item["Key"] for item in response.get("Deleted", [])]
        errors = response.get("Errors", [])
        for error in errors:
            logger.warning(
                f"[S3 Driver] Failed to delete {error.get('Key')}: {error.get('Code')} {error.get('Message')}"
            )
        return {"deleted": deleted, "errors": errors}

    def create_bucket_if_not_exists(self, bucket_name: str):
        try:
            self.s3.head_bucket(Bucket=bucket_name)
            logger.debug(f"[S3 Driver] Bucket '{bucket_name}' already exists.")
        except ClientError as e:
            if e.response['Error']['Code'] not in ('404', 'NoSuchBucket'):
                logger.error(f"[S3 Driver] Error checking bucket: {e}")
                raise

            logger.info(f"[S3 Driver] Bucket '{bucket_name}' not found. Creating...")
            try:
                # 对于非 us-east-1 的 AWS S3，创建时必须指定区域
                if self.s3_conf.region != "us-east-1" and not self.s3_conf.endpoint:
                    self.s3.create_bucket(
                        Bucket=bucket_name,
                        CreateBucketConfiguration={'LocationConstraint': self.s3_conf.region}
                    )
                else:
                    # MinIO 或 us-east-1
                    self.s3.create_bucket(Bucket=bucket_name)
                logger.info(f"[S3 Driver] Successfully created bucket '{bucket_name}'.")
            except ClientError as create_error:
                logger.error(f"[S3 Driver] Failed to create bucket '{bucket_name}': {create_error}")
                raise
