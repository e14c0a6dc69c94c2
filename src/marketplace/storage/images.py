"""Local storage for listing images.

Image uploads themselves happen outside the marketplace domain; this module
only needs to resolve a stored image path and delete it when the listing goes
away. Deletion errors are raised to the caller, which decides whether they
matter (the phone cascade logs them and carries on).
"""

import os
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_IMAGE_DIR = "uploads"


class LocalImageStorage:
    def __init__(self, root):
        self.root = Path(root)

    @classmethod
    def from_env(cls):
        return cls(os.getenv("MARKETPLACE_IMAGE_DIR", DEFAULT_IMAGE_DIR))

    def resolve(self, image):
        """Map a stored image reference (`/images/x.jpg`, `x.jpg`) to a path under the root.

        Remote URLs are not ours to delete and resolve to None.
        """
        if not image or "://" in image:
            return None

        path = (self.root / Path(image).name).resolve()
        if self.root.resolve() not in path.parents:
            return None
        return path

    def delete(self, image):
        """Delete the stored file; returns True when a file was removed."""
        path = self.resolve(image)
        if path is None or not path.exists():
            logger.debug("No stored image to delete", image=image)
            return False

        path.unlink()
        logger.info("Deleted listing image", image=image, path=str(path))
        return True
