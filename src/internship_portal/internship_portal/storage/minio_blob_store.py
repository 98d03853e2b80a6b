from __future__ import annotations

import io
import logging
from datetime import timedelta

from minio import Minio
from minio.error import S3Error

from ..core.constants import DEFAULT_PRESIGNED_URL_SECONDS
from ..core.exceptions import StorageError
from .blob_store import BlobStore, StoredBlob

logger = logging.getLogger(__name__)


def get_minio_client(minio_config: dict) -> Minio:
    """Initialize and return a MinIO client."""
    return Minio(
        endpoint=str(minio_config.get("endpoint", "localhost:9000")),
        access_key=str(minio_config.get("access_key", "")),
        secret_key=str(minio_config.get("secret_key", "")),
        secure=bool(minio_config.get("secure", False)),
    )


class MinioBlobStore(BlobStore):
    def __init__(self, client: Minio, bucket_name: str, *, url_expires_seconds: int = DEFAULT_PRESIGNED_URL_SECONDS):
        self._client = client
        self._bucket = bucket_name
        self._expires = timedelta(seconds=int(url_expires_seconds))

    def ensure_bucket(self) -> None:
        try:
            if not self._client.bucket_exists(self._bucket):
                self._client.make_bucket(self._bucket)
        except S3Error as e:
            raise StorageError(f"Failed to prepare bucket: {e}") from e

    def upload(self, *, path: str, data: bytes, content_type: str) -> StoredBlob:
        try:
            self._client.put_object(self._bucket, path, io.BytesIO(data), length=len(data), content_type=content_type)
            url = self._client.presigned_get_object(self._bucket, path, expires=self._expires)
        except S3Error as e:
            logger.error("upload of %s failed: %s", path, e)
            raise StorageError(f"Failed to upload file: {e}") from e
        return StoredBlob(path=path, url=url)

    def download(self, path: str) -> bytes:
        response = None
        try:
            response = self._client.get_object(self._bucket, path)
            return response.read()
        except S3Error as e:
            logger.error("download of %s failed: %s", path, e)
            raise StorageError(f"Failed to download file: {e}") from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()

    def delete(self, path: str) -> None:
        try:
            self._client.remove_object(self._bucket, path)
        except S3Error as e:
            logger.error("delete of %s failed: %s", path, e)
            raise StorageError(f"Failed to delete file: {e}") from e
