"""S3 content store for uploads, recordings and generated images."""

import asyncio
import logging
from urllib.parse import quote

import boto3
from botocore.exceptions import ClientError

from polymath.config import Settings

logger = logging.getLogger(__name__)


class StorageService:
    """Service for interacting with an S3-compatible bucket."""

    def __init__(self, s3_client, bucket: str, public_base_url: str):
        self.s3_client = s3_client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageService":
        """Build the boto3 client from settings."""
        client_kwargs = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
            "region_name": settings.aws_s3_region,
        }
        # Support MinIO / LocalStack by pointing to a custom endpoint
        if settings.aws_s3_endpoint_url:
            client_kwargs["endpoint_url"] = settings.aws_s3_endpoint_url

        if settings.storage_public_base_url:
            public_base_url = settings.storage_public_base_url
        elif settings.aws_s3_endpoint_url:
            public_base_url = f"{settings.aws_s3_endpoint_url.rstrip('/')}/{settings.aws_s3_bucket}"
        else:
            public_base_url = f"https://{settings.aws_s3_bucket}.s3.{settings.aws_s3_region}.amazonaws.com"

        return cls(boto3.client("s3", **client_kwargs), settings.aws_s3_bucket, public_base_url)

    def url_for(self, file_key: str) -> str:
        """Public URL of a stored object."""
        return f"{self.public_base_url}/{quote(file_key)}"

    async def put_object(self, file_key: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes under file_key.

        Args:
            file_key: S3 object key (path) for the file
            data: Raw bytes
            content_type: MIME type stored with the object

        Returns:
            Public URL of the stored object

        Raises:
            Exception: If the S3 operation fails
        """
        try:
            await asyncio.to_thread(
                self.s3_client.put_object,
                Bucket=self.bucket,
                Key=file_key,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            raise Exception(f"Failed to upload object to S3: {str(e)}") from e

        logger.info("Stored %d bytes at %s", len(data), file_key)
        return self.url_for(file_key)
