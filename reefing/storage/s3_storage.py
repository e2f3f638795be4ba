import boto3
from botocore.exceptions import ClientError
from reefing.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class S3Storage:
    """Private bucket holding every uploaded image. Rows store keys, clients get presigned URLs."""

    def __init__(self, bucket_name: Optional[str] = None, client=None):
        self.bucket_name = bucket_name or settings.s3_bucket_name
        if not self.bucket_name:
            raise ValueError("S3 bucket name must be configured")

        if client is None:
            client_kwargs = {"region_name": settings.aws_region}
            # Without explicit keys boto3 falls back to its default credential chain
            if settings.aws_access_key_id and settings.aws_secret_access_key:
                client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
                client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
            client = boto3.client("s3", **client_kwargs)
        self.s3_client = client
        self.signed_url_ttl = settings.signed_url_ttl_seconds

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload a private object and return its key"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type,
                ACL="private",
            )
            return key
        except ClientError as e:
            logger.error(f"Failed to upload file to S3 ({key}): {str(e)}")
            raise

    def get_signed_url(self, key: str) -> str:
        """Time-limited GET URL for a private object"""
        return self.s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket_name, "Key": key},
            ExpiresIn=self.signed_url_ttl,
        )

    def delete_file(self, key: str) -> None:
        """Delete file from S3; raises on failure, callers decide whether that is fatal"""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            logger.error(f"Failed to delete file from S3 ({key}): {str(e)}")
            raise

    def check_bucket(self) -> None:
        self.s3_client.head_bucket(Bucket=self.bucket_name)


_storage: Optional[S3Storage] = None


def get_storage() -> S3Storage:
    global _storage
    if _storage is None:
        _storage = S3Storage()
        logger.info("S3 storage initialized for bucket %s", _storage.bucket_name)
    return _storage
