"""
Object storage for cover images and avatars
Uses S3 when AWS credentials are configured, local filesystem otherwise
"""

import os
import time
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from haven_admin.config import settings
from haven_admin.core.error_handling import StoreError, ValidationFailed

logger = logging.getLogger(__name__)

ENTITY_TYPES = ("modules", "articles", "avatars")


# Parse AWS_REGION (handle both "ap-southeast-2" and "Asia Pacific (Sydney) ap-southeast-2" formats)
def parse_aws_region(region_str: str) -> str:
    """Extract actual region code from potentially formatted string"""
    if not region_str:
        return 'us-east-1'
    parts = region_str.split()
    for part in parts:
        if '-' in part and len(part) > 5:
            return part
    return region_str.strip()


def build_storage_path(entity_type: str, author_id: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build the object path ``{entityType}/{authorId}/{timestamp}.{ext}``

    The extension is whatever follows the last dot of the uploaded filename.
    """
    if entity_type not in ENTITY_TYPES:
        raise ValidationFailed(f"Unsupported upload type: {entity_type}")
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'bin'
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{entity_type}/{author_id}/{timestamp_ms}.{ext}"


class StorageService:
    """
    Environment-aware storage with local filesystem fallback

    Logical buckets ("avatars") map to a key prefix inside the configured
    S3 bucket, or to a sub-directory of LOCAL_STORAGE_DIR.
    """

    def __init__(self):
        self.use_s3 = settings.has_s3_credentials()

        if self.use_s3:
            self.region = parse_aws_region(settings.AWS_REGION)
            self.s3_client = boto3.client(
                's3',
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=self.region
            )
            self.bucket_name = settings.AWS_S3_BUCKET_NAME
            logger.info(f"StorageService initialized with S3 storage (bucket: {self.bucket_name})")
        else:
            self.local_storage_dir = settings.LOCAL_STORAGE_DIR
            os.makedirs(self.local_storage_dir, exist_ok=True)
            self.s3_client = None
            self.bucket_name = None
            logger.warning("StorageService initialized with LOCAL STORAGE fallback - AWS credentials not available")

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = 'application/octet-stream') -> None:
        """
        Store an object

        Args:
            bucket: Logical bucket name, e.g. "avatars"
            path: Object path inside the bucket
            data: File bytes
            content_type: MIME type
        """
        key = f"{bucket}/{path}"
        if self.use_s3:
            try:
                self.s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                    ServerSideEncryption='AES256'
                )
                logger.info(f"Uploaded to S3: s3://{self.bucket_name}/{key}")
            except ClientError as e:
                logger.error(f"S3 upload failed: {e}")
                raise StoreError(f"Upload failed: {e}")
        else:
            local_path = os.path.join(self.local_storage_dir, bucket, *path.split('/'))
            os.makedirs(os.path.dirname(local_path), exist_ok=True)
            with open(local_path, 'wb') as f:
                f.write(data)
            logger.info(f"Saved to local storage: {local_path}")

    def get_public_url(self, bucket: str, path: str) -> str:
        key = f"{bucket}/{path}"
        if settings.STORAGE_PUBLIC_BASE_URL:
            return f"{settings.STORAGE_PUBLIC_BASE_URL.rstrip('/')}/{key}"
        if self.use_s3:
            return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"
        return f"/storage/{key}"


_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
