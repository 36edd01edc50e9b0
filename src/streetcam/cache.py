"""
streetcam.cache — On-disk image cache keyed by coordinate.

One JPEG per coordinate in a flat directory, named
``{lat:.6f}_{lon:.6f}.jpg``.  Entries are created on the first successful
fetch and never updated or removed by the package afterwards (other than
being overwritten by a later write for the same key).

Writes are serialized by a lock and land atomically (temp file + rename),
so unlocked readers only ever see a complete file.
"""

from __future__ import annotations
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Union
from PIL import Image, UnidentifiedImageError

from streetcam.config import JPEG_QUALITY
from streetcam.geo import Coordinate, cache_key

logger = logging.getLogger(__name__)

#: Extension of cached image files.
CACHE_SUFFIX = ".jpg"


class CoordinateCache:
    """Coordinate-keyed JPEG store rooted at *directory*.

    The directory (and its parents) is created on construction and on
    every :meth:`configure` call.
    """

    def __init__(self, directory: Union[str, Path]):
        self._lock = threading.Lock()
        self.configure(directory)

    def configure(self, directory: Union[str, Path]) -> None:
        """Point the cache at a new root, creating it if needed."""
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, coord: Coordinate) -> Path:
        return self.directory / f"{cache_key(coord)}{CACHE_SUFFIX}"

    def exists(self, coord: Coordinate) -> bool:
        return self.path_for(coord).is_file()

    def read(self, coord: Coordinate) -> Image.Image | None:
        """Load the cached image for *coord*.

        Returns ``None`` if the entry is missing or cannot be decoded; a
        corrupt file is logged and left in place.
        """
        path = self.path_for(coord)
        try:
            img = Image.open(path)
            img.load()
        except FileNotFoundError:
            return None
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("Unreadable cache entry %s: %s", path, e)
            return None
        return img

    def write(self, coord: Coordinate, image: Image.Image) -> Path:
        """Re-encode *image* as JPEG (quality 75) and store it for *coord*.

        Overwrites any existing entry.  Returns the cache file path.
        """
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        path = self.path_for(coord)
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(prefix=".tmp_", suffix=CACHE_SUFFIX,
                                            dir=self.directory)
            try:
                with os.fdopen(fd, "wb") as f:
                    image.save(f, format="JPEG", quality=JPEG_QUALITY)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        logger.debug("Cached %s", path)
        return path

    def size(self) -> tuple[int, float]:
        """Return (file_count, total_size_mb) of the cache."""
        # the directory may have been removed from outside since configure()
        if not self.directory.exists():
            return 0, 0.0
        files = [f for f in self.directory.iterdir()
                 if f.is_file() and f.suffix == CACHE_SUFFIX and not f.name.startswith(".tmp_")]
        total = sum(f.stat().st_size for f in files)
        return len(files), total / (1024 * 1024)
