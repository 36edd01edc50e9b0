"""
streetcam.fetcher — Nearby street-level photo lookup and download.

Fetching a coordinate is a two-stage operation against the OpenStreetCam
(KartaView) API:

1. ``GET {base}/2.0/photo/?lat=..&lng=..&zoomLevel=15`` returns
   ``{"photos": [{"thumbnailUrl": ...}, ...]}``; the first photo wins.
2. The thumbnail is downloaded and decoded with Pillow, written through
   the :class:`~streetcam.cache.CoordinateCache`, and returned.

:meth:`ImageryFetcher.fetch` runs both stages on an executor and hands
back a :class:`concurrent.futures.Future`.  There is no retry, no
deduplication of concurrent requests and no cancellation: a slow fetch
for an old position can still complete after a newer one.
"""

from __future__ import annotations
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from io import BytesIO
from typing import Optional
from urllib.parse import urljoin
import requests
from PIL import Image, UnidentifiedImageError

from streetcam.cache import CoordinateCache
from streetcam.config import API_BASE_URL, ZOOM_LEVEL
from streetcam.geo import Coordinate, format_degrees

logger = logging.getLogger(__name__)

NO_IMAGE_FOUND = "No nearby OpenStreetCam image found."
NO_IMAGE_URL = "No valid OpenStreetCam image URL found."
IMAGE_LOAD_FAILED = "Failed to load OpenStreetCam image."


class FetchError(Exception):
    """A fetch attempt ended without an image.  ``str(err)`` is user-facing."""


class TransportError(FetchError):
    """The HTTP request itself failed (connection error, timeout, non-2xx).

    ``stage`` is ``"metadata"`` or ``"thumbnail"``.
    """

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage


class NoImageFoundError(FetchError):
    def __init__(self, message: str = NO_IMAGE_FOUND):
        super().__init__(message)


class NoImageUrlError(FetchError):
    def __init__(self, message: str = NO_IMAGE_URL):
        super().__init__(message)


class ImageDecodeError(FetchError):
    def __init__(self, message: str = IMAGE_LOAD_FAILED):
        super().__init__(message)


class ImageryFetcher:
    """Fetch photos near a coordinate and store them in *cache*.

    Parameters
    ----------
    cache : CoordinateCache
        Where downloaded images are written.
    session : requests.Session, optional
        HTTP transport.  A private session is created when omitted.
    base_url : str, optional
        API root (default :data:`~streetcam.config.API_BASE_URL`).
    timeout : float, optional
        Per-request timeout in seconds; ``None`` keeps the transport default.
    executor : concurrent.futures.Executor, optional
        Runs fetches.  A private ``ThreadPoolExecutor`` is created when omitted.
    max_workers : int, optional
        Size of the private thread pool.
    """

    def __init__(self, cache: CoordinateCache,
                 session: Optional[requests.Session] = None,
                 base_url: str = API_BASE_URL,
                 timeout: Optional[float] = None,
                 executor: Optional[Executor] = None,
                 max_workers: Optional[int] = None):
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="streetcam-fetch")

    def build_api_url(self, coord: Coordinate, zoom_level: int = ZOOM_LEVEL) -> str:
        return (f"{self.base_url}/2.0/photo/?lat={format_degrees(coord.lat)}"
                f"&lng={format_degrees(coord.lon)}&zoomLevel={zoom_level}")

    def fetch(self, coord: Coordinate) -> Future:
        """Start fetching an image for *coord*.

        The returned future resolves to the decoded ``PIL.Image.Image``
        (already cached) or raises a :class:`FetchError`.
        """
        return self.executor.submit(self.fetch_now, coord)

    def fetch_now(self, coord: Coordinate) -> Image.Image:
        """Blocking version of :meth:`fetch`."""
        url = self.lookup_thumbnail(coord)
        img = self.download_thumbnail(url)
        try:
            self.cache.write(coord, img)
        except OSError as e:
            # The image is still delivered; only the cache entry is lost
            logger.warning("Could not cache image for %s: %s", coord, e)
            return img
        logger.info("Downloaded and cached image for %s", coord)
        return img

    def lookup_thumbnail(self, coord: Coordinate) -> str:
        """Stage 1: return the thumbnail URL of the first photo near *coord*."""
        url = self.build_api_url(coord)
        logger.debug("Searching photos: %s", url)
        resp = self._get(url, stage="metadata")

        try:
            doc = resp.json()
        except ValueError:
            doc = None
        photos = doc.get("photos") if isinstance(doc, dict) else None
        if not isinstance(photos, list) or not photos:
            raise NoImageFoundError()

        photo = photos[0]
        thumb = photo.get("thumbnailUrl") if isinstance(photo, dict) else None
        if not isinstance(thumb, str) or not thumb:
            raise NoImageUrlError()
        # Relative references are resolved against the API root
        return urljoin(self.base_url + "/", thumb)

    def download_thumbnail(self, url: str) -> Image.Image:
        """Stage 2: download and decode the image at *url*."""
        logger.debug("Downloading thumbnail: %s", url)
        resp = self._get(url, stage="thumbnail")
        try:
            img = Image.open(BytesIO(resp.content))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ImageDecodeError() from e
        return img

    def close(self) -> None:
        """Release the executor and session if this fetcher created them.

        In-flight fetches are allowed to finish.
        """
        if self._owns_executor:
            self.executor.shutdown(wait=False)
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "ImageryFetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _get(self, url: str, stage: str) -> requests.Response:
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(str(e), stage=stage) from e
        return resp
