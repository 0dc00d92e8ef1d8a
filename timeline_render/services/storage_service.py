import logging
import os
from pathlib import Path

from timeline_render.config import get_settings
from timeline_render.exceptions import FinalizeIOError, InvalidDestinationError, PathOutsideRootError

logger = logging.getLogger(__name__)


class GalleryStorage:
    """Local gallery file storage confined to a single root directory."""

    def __init__(self, base_path: str | Path | None = None, temp_suffix: str | None = None) -> None:
        settings = get_settings()
        self.base_path = Path(base_path).resolve() if base_path else settings.gallery_root
        self.temp_suffix = temp_suffix if temp_suffix is not None else settings.temp_suffix

    def resolve(self, path: str | Path) -> Path:
        """Absolute path for a root-relative (or absolute) path inside the root.

        Raises:
            PathOutsideRootError: If the path escapes the root
        """
        full_path = (self.base_path / path).resolve()
        if not full_path.is_relative_to(self.base_path):
            raise PathOutsideRootError(f"Access denied: {path}")
        return full_path

    def relative(self, full_path: Path) -> str:
        """Root-relative POSIX path, the form the gallery API hands out."""
        return full_path.relative_to(self.base_path).as_posix()

    def destination_for(self, destination_path: str, new_name: str | None = None) -> Path:
        """Resolve the output file, renamed to ``new_name`` when given.

        Raises:
            PathOutsideRootError: If the path escapes the root
            InvalidDestinationError: If the path is the root or an existing directory
        """
        destination = self._file_destination(destination_path)
        if new_name and new_name != destination.name:
            destination = self._file_destination(
                Path(self.relative(destination)).parent / new_name
            )
        return destination

    def _file_destination(self, path: str | Path) -> Path:
        destination = self.resolve(path)
        # Neither the root nor a directory can be an output file
        if destination == self.base_path or destination.is_dir():
            raise InvalidDestinationError(f"Destination is a directory: {path}")
        return destination

    def temp_path_for(self, destination: Path) -> Path:
        """Temp file next to the destination, keeping its extension for the muxer."""
        return destination.with_name(f"{destination.stem}{self.temp_suffix}{destination.suffix}")

    def discard(self, path: Path) -> bool:
        """Delete a file if present."""
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"[FINALIZE] Could not remove {path}: {e}")
            return False

    def replace(self, temp_path: Path, destination: Path) -> Path:
        """Move the rendered temp file over the destination.

        The existing destination is removed first and the temp file renamed
        into place. Both live under the same root, so a plain rename works.

        Raises:
            FinalizeIOError: If removing or renaming fails
        """
        try:
            if destination.exists():
                destination.unlink()
            os.rename(temp_path, destination)
        except OSError as e:
            raise FinalizeIOError(str(e))
        return destination
