"""
Image Relocator - moves report images between lifecycle folders.

Layout:
- reports/verified/{report_id}/{file_name}  (token-bearing public URL)
- reports/denied/{file_name}                (flat, kept for audit)

Relocation is copy-then-delete and therefore not atomic:
- copy failed: ImageRelocationError, nothing changed
- copy ok, source delete failed: terminal, the destination is used and the
  leftover source is logged
- source gone but destination present (retry after a partial run): the
  destination is reused
"""

import logging
from typing import Optional

from app.services.errors import ImageRelocationError
from app.services.stores.base import ImageStore

logger = logging.getLogger(__name__)

VERIFIED_PREFIX = "reports/verified"
DENIED_PREFIX = "reports/denied"


def image_file_name(path: Optional[str]) -> str:
    """Last path segment, or "image" when the path has none."""
    return (path or "").split("/")[-1] or "image"


class ImageRelocator:
    def __init__(self, store: ImageStore):
        self.store = store

    def move_to_verified(self, image_path: str, report_id: str) -> str:
        """
        Move an image into the verified area and return its public download URL.

        Raises:
            ImageRelocationError: Image could not be moved or tokenized
        """
        destination = f"{VERIFIED_PREFIX}/{report_id}/{image_file_name(image_path)}"
        self._relocate(image_path, destination)
        try:
            token = self.store.ensure_download_token(destination)
        except Exception as e:
            raise ImageRelocationError(f"Failed to mint download token for {destination}: {e}", cause=e)
        return self.store.download_url(destination, token)

    def move_to_denied(self, image_path: str) -> str:
        """Move an image into the denied area and return its new path."""
        destination = f"{DENIED_PREFIX}/{image_file_name(image_path)}"
        self._relocate(image_path, destination)
        return destination

    def discard(self, image_path: str) -> bool:
        """
        Delete an image outright.

        Returns:
            False if the image was already gone, True if it was deleted

        Raises:
            ImageRelocationError: Storage failed while deleting
        """
        try:
            if not self.store.exists(image_path):
                logger.info(f"Image {image_path} already absent, nothing to delete")
                return False
            self.store.delete(image_path)
        except Exception as e:
            raise ImageRelocationError(f"Failed to delete image {image_path}: {e}", cause=e)
        logger.info(f"Deleted image {image_path}")
        return True

    def _relocate(self, source: str, destination: str) -> None:
        try:
            source_exists = self.store.exists(source)
            if not source_exists:
                if self.store.exists(destination):
                    logger.info(f"Image already relocated to {destination}, reusing it")
                    return
                raise ImageRelocationError(f"Image not found at {source}")
            self.store.copy(source, destination)
        except ImageRelocationError:
            raise
        except Exception as e:
            raise ImageRelocationError(f"Failed to copy image {source} -> {destination}: {e}", cause=e)

        try:
            self.store.delete(source)
        except Exception as e:
            logger.warning(f"⚠️ Image copied to {destination} but source {source} could not be deleted: {e}")
            return
        logger.info(f"✅ Image moved {source} -> {destination}")
