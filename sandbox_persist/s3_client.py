"""
Read-only S3 client for the backup bucket.
Lets callers check the last sync without a running sandbox or mount.
"""
import logging
import posixpath
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from sandbox_persist.models import is_valid_timestamp
from sandbox_persist.utils.config import StorageCredentials, SyncPaths

logger = logging.getLogger(__name__)

MISSING_KEY_CODES = ("NoSuchKey", "404", "NotFound")


class S3Client:
    """
    S3 client for the R2 bucket the sandbox mounts.

    Args:
        credentials: R2 credentials (defaults to the environment)
        prefix: Optional prefix for all keys, for buckets where the mount is not the bucket root
    """

    def __init__(self, credentials: Optional[StorageCredentials] = None, prefix: str = ""):
        self.credentials = credentials or StorageCredentials.from_env()
        self.bucket = self.credentials.bucket
        self.prefix = prefix.strip("/")

        if not self.credentials.is_configured():
            raise ValueError("R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY and CF_ACCOUNT_ID must be set")

        self._client = None

    @property
    def client(self):
        """Lazy initialization of boto3 S3 client"""
        if self._client is None:
            config = Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            )

            self._client = boto3.client(
                's3',
                endpoint_url=self.credentials.resolved_endpoint_url,
                aws_access_key_id=self.credentials.access_key_id,
                aws_secret_access_key=self.credentials.secret_access_key,
                region_name="auto",
                config=config
            )
        return self._client

    def _build_key(self, path: str) -> str:
        """Build full S3 key with prefix"""
        clean_path = path.lstrip("/")
        if self.prefix:
            return f"{self.prefix}/{clean_path}"
        return clean_path

    def read_text(self, file_path: str) -> Optional[str]:
        """
        Read an object as UTF-8 text.

        Returns:
            The content, or None if the object does not exist.

        Raises:
            ClientError: for any other S3 error
        """
        key = self._build_key(file_path)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in MISSING_KEY_CODES:
                return None
            raise
        return response['Body'].read().decode("utf-8")

    def file_exists(self, file_path: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=self._build_key(file_path))
            return True
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in MISSING_KEY_CODES:
                return False
            raise

    def read_last_sync(self, paths: Optional[SyncPaths] = None) -> Optional[str]:
        """Timestamp of the last complete sync, or None if there is no valid marker."""
        paths = paths or SyncPaths()
        content = self.read_text(paths.marker_name)
        if content is None:
            return None
        last_sync = content.strip()
        if not is_valid_timestamp(last_sync):
            logger.warning(f"[S3] Malformed {paths.marker_name} in bucket {self.bucket}: {last_sync!r}")
            return None
        return last_sync

    def has_config_backup(self, paths: Optional[SyncPaths] = None) -> bool:
        """True when the bucket holds a synced config file."""
        paths = paths or SyncPaths()
        return self.file_exists(posixpath.join(paths.remote_config_subdir, paths.config_marker))
