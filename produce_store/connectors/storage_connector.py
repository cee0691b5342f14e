"""
Storage Connector
Uploads product images to Supabase Storage

Author: TM3
Date: 2026-02-13
"""
import logging
import uuid

from produce_store.core.config import settings
from produce_store.core.database import get_supabase

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
MAX_IMAGE_BYTES = 5 * 1024 * 1024


class StorageConnector:
    """Supabase Storage bucket for product images"""

    def __init__(self, client=None, bucket: str = None):
        self._client = client
        self.bucket = bucket or settings.SUPABASE_STORAGE_BUCKET

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def upload_image(self, content: bytes, content_type: str, folder: str = "products") -> str:
        """
        Store an image under a random name

        Returns:
            Public URL of the stored file

        Raises:
            ValueError: unsupported type or file too large
        """
        extension = ALLOWED_IMAGE_TYPES.get(content_type)
        if not extension:
            raise ValueError(f"Unsupported image type: {content_type}")
        if len(content) > MAX_IMAGE_BYTES:
            raise ValueError("Image must be 5 MB or smaller")

        path = f"{folder}/{uuid.uuid4().hex}.{extension}"
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(path, content, {"content-type": content_type})

        logger.info(f"Uploaded image to {self.bucket}/{path}")
        return bucket.get_public_url(path)

    def delete_image(self, public_url: str) -> bool:
        """Remove a file given its public URL; False if it isn't in our bucket"""
        marker = f"/object/public/{self.bucket}/"
        if marker not in public_url:
            return False

        path = public_url.split(marker, 1)[1].split("?", 1)[0]
        self.client.storage.from_(self.bucket).remove([path])
        logger.info(f"Deleted image {self.bucket}/{path}")
        return True
