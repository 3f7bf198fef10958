"""S3 object storage for finished kits."""

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from config.settings import (
    AWS_REGION,
    S3_BUCKET,
    S3_PREFIX,
    S3_TIMEOUT_SECONDS,
    S3_URL_EXPIRY_SECONDS,
)
from src.services.errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

# SigV4 presigned URLs are capped at seven days
MAX_PRESIGN_SECONDS = 604800


class StorageService:
    """Upload archives and hand out time-limited download links."""

    def __init__(
        self,
        client: Optional[Any] = None,
        bucket: Optional[str] = None,
        prefix: Optional[str] = None,
        region: Optional[str] = None,
        url_expiry_seconds: int = S3_URL_EXPIRY_SECONDS,
        timeout: float = S3_TIMEOUT_SECONDS,
    ) -> None:
        self.bucket = bucket or S3_BUCKET
        self.prefix = S3_PREFIX if prefix is None else prefix
        self.url_expiry_seconds = url_expiry_seconds
        self.client = client or boto3.client(
            "s3",
            region_name=region or AWS_REGION,
            config=Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"total_max_attempts": 1},
            ),
        )
        if not self.bucket:
            logger.warning("S3_BUCKET is not configured; uploads will fail")

    def key_for_job(self, job_id: str) -> str:
        return f"{self.prefix}{job_id}.zip"

    def upload_archive(self, archive_path: str, key: str) -> str:
        try:
            self.client.upload_file(
                archive_path,
                self.bucket,
                key,
                ExtraArgs={"ContentType": "application/zip"},
            )
        except (BotoCoreError, ClientError) as error:
            logger.error(f"Failed to upload {archive_path} to s3://{self.bucket}/{key}: {error}")
            raise UpstreamError(f"Upload failed: {error}") from error

        logger.info(f"Uploaded archive to s3://{self.bucket}/{key}")
        return key

    def presigned_download_url(self, key: str) -> str:
        """Presigned GET URL for ``key``; NotFoundError if the object is missing."""
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=min(self.url_expiry_seconds, MAX_PRESIGN_SECONDS),
            )
        except (BotoCoreError, ClientError) as error:
            logger.error(f"Download lookup failed for {key}: {error}")
            raise NotFoundError(f"Object {key} not found") from error
