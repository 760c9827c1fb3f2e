"""
Blob storage for rehosted capture media.

Objects are written once under captures/{capture_id}/ and served publicly,
either through a CDN base URL or straight from the bucket.
"""

import logging
import os
from typing import Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Lazy-loaded AWS client (initialized on first use)
_s3_client = None


def get_s3_client():
    """Get or create S3 client."""
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client('s3')
    return _s3_client


class BlobStore:
    """
    Uploads media bytes to S3 and hands back a stable public URL.

    Args:
        bucket: Destination bucket
        public_base_url: Optional CDN base; keys are appended to it
        region: Bucket region, used for the default virtual-hosted URL
        client: Pre-built S3 client (tests)
    """

    def __init__(
        self,
        bucket: str,
        public_base_url: Optional[str] = None,
        region: Optional[str] = None,
        client=None,
    ):
        if not bucket:
            raise ValueError("bucket is required")
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip('/') if public_base_url else None
        self.region = region or os.environ.get('AWS_REGION', 'us-east-1')
        self._client = client

    @property
    def client(self):
        return self._client or get_s3_client()

    def public_url(self, path: str) -> str:
        """Public URL an uploaded object is reachable at."""
        key = path.lstrip('/')
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, path: str, body: bytes, content_type: str) -> str:
        """
        Write bytes to the bucket.

        Args:
            path: Object key, e.g. captures/{id}/images/0.jpg
            body: Object bytes
            content_type: MIME type stored on the object

        Returns:
            Public URL of the uploaded object

        Raises:
            ClientError: If the upload fails
        """
        key = path.lstrip('/')
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                CacheControl='public, max-age=31536000, immutable',
            )
        except ClientError as e:
            logger.error(f"Failed to upload s3://{self.bucket}/{key}: {e}")
            raise

        logger.info(f"Uploaded {len(body)} bytes to s3://{self.bucket}/{key}")
        return self.public_url(key)
