"""Thumbnail cache invalidation.

Gallery thumbnails live at ``<root>/<thumbnail_dir>/<md5(relative path)>.jpg``.
When a render overwrites a file its cached thumbnail is stale and is removed
so the gallery regenerates it on the next request.
"""

import hashlib
import logging
from pathlib import Path
from typing import Protocol

from timeline_render.config import get_settings

logger = logging.getLogger(__name__)


class CacheInvalidator(Protocol):
    def invalidate(self, path: str) -> None: ...


class ThumbnailCache:
    def __init__(self, root: str | Path | None = None, dir_name: str | None = None):
        settings = get_settings()
        self.root = Path(root).resolve() if root else settings.gallery_root
        self.thumb_dir = self.root / (dir_name or settings.thumbnail_dir_name)

    def thumb_path(self, rel_path: str) -> Path:
        digest = hashlib.md5(rel_path.encode("utf-8")).hexdigest()
        return self.thumb_dir / f"{digest}.jpg"

    def invalidate(self, path: str) -> None:
        """Drop the cached thumbnail for a root-relative path. Never raises."""
        rel_path = path.replace("\\", "/")
        thumb = self.thumb_path(rel_path)
        try:
            thumb.unlink()
            logger.info(f"[THUMB] Invalidated {rel_path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[THUMB] Failed to invalidate {rel_path}: {e}")
