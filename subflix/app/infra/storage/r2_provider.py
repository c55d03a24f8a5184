# subflix/app/infra/storage/r2_provider.py
"""
Cloudflare R2 blob store for uploaded subtitle files.
R2 is S3-compatible, so we use boto3 with custom endpoint.
"""
from __future__ import annotations

import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from subflix.app.config import get_settings
from subflix.app.domain.errors import BlobStoreError, BlobUploadError, ConfigurationError
from subflix.app.infra.storage.base import BlobStore

logger = logging.getLogger(__name__)

# Lifetime of download links signed for private buckets
SIGNED_URL_EXPIRES_SECONDS = 3600


class R2BlobStore(BlobStore):
    """
    Cloudflare R2 blob store using boto3 (S3-compatible).

    Settings used:
    - R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME
    - R2_PUBLIC_URL: (Optional) Public URL for the bucket
    """

    def __init__(
        self,
        account_id: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        bucket_name: Optional[str] = None,
        public_url: Optional[str] = None,
        client=None,
    ):
        settings = get_settings()
        self.account_id = account_id or settings.R2_ACCOUNT_ID
        self.access_key_id = access_key_id or settings.R2_ACCESS_KEY_ID
        self.secret_access_key = secret_access_key or settings.R2_SECRET_ACCESS_KEY
        self.bucket_name = bucket_name or settings.R2_BUCKET_NAME
        self.public_url = (public_url or settings.R2_PUBLIC_URL).rstrip("/")

        if client is None and not all(
            [self.account_id, self.access_key_id, self.secret_access_key, self.bucket_name]
        ):
            raise ConfigurationError(
                ["Missing R2 configuration. Required: R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, "
                 "R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME"]
            )

        self.endpoint_url = f"https://{self.account_id}.r2.cloudflarestorage.com"

        self._client = client or boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            ),
            region_name="auto",  # R2 uses 'auto' as region
        )

        logger.info(
            "R2BlobStore initialized: bucket=%s, endpoint=%s",
            self.bucket_name,
            self.endpoint_url,
        )

    def upload_bytes(
        self,
        object_key: str,
        data: bytes,
        content_type: str = "application/x-subrip",
    ) -> str:
        """
        Upload the file and return its public URL, or the object key when
        the bucket is private (signed at read time by `resolve_url`).
        """
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=data,
                ContentType=content_type,
            )
            logger.info("Uploaded to R2: key=%s, size=%d bytes", object_key, len(data))
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload to R2: %s", e)
            raise BlobUploadError(object_key, str(e)) from e

        if self.public_url:
            return f"{self.public_url}/{object_key}"
        return object_key

    def generate_signed_get_url(
        self,
        object_key: str,
        expires_seconds: int = SIGNED_URL_EXPIRES_SECONDS,
    ) -> str:
        """Generate a pre-signed GET URL for downloading from R2."""
        try:
            url = self._client.generate_presigned_url(
                ClientMethod="get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": object_key,
                },
                ExpiresIn=expires_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to generate signed GET URL: %s", e)
            raise BlobStoreError(object_key, str(e), action="sign") from e

        logger.debug("Generated signed GET URL for key=%s", object_key)
        return url

    def delete_object(self, object_key: str) -> bool:
        """Delete an object from R2."""
        try:
            self._client.delete_object(
                Bucket=self.bucket_name,
                Key=object_key,
            )
            logger.info("Deleted object from R2: key=%s", object_key)
            return True

        except ClientError as e:
            logger.error("Failed to delete object from R2: %s", e)
            return False
