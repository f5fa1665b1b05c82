import logging
import os
from dataclasses import dataclass
from typing import Optional

from ..core.config import get_settings

logger = logging.getLogger("curiocodex.images")


@dataclass
class UploadedImage:
    filename: str
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        _, ext = os.path.splitext(self.filename or "")
        ext = ext.lstrip(".").lower()
        return ext if ext.isalnum() else "jpg"


class ImageStore:
    """Writes item photos below ``directory`` as ``items/<user>/<item>.<ext>``."""

    def __init__(self, directory: str | None = None):
        self.dir = directory or get_settings().image_store_dir

    def save(self, user_id: str, item_id: str, image: UploadedImage) -> str:
        key = f"items/{user_id}/{item_id}.{image.extension}"
        path = os.path.join(self.dir, *key.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(image.data)
        return key

    def discard(self, key: Optional[str]) -> None:
        if not key:
            return
        path = os.path.join(self.dir, *key.split("/"))
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove image {key}: {e}")


image_store = ImageStore()
