"""
streetcam.monitor — Distance-gated position monitoring.

:class:`PositionMonitor` subscribes to a :class:`~streetcam.positions.PositionSource`
and, for each sample at least ``min_distance`` meters away from the last
accepted one, either serves the image from the cache or starts a fetch.
Outcomes are reported to a :class:`MonitorListener`:

- ``image_ready(image)``       — cache hit (synchronously) or finished fetch
- ``loading_started()``        — a fetch was dispatched
- ``loading_failed(message)``  — a fetch ended without an image

Fetch completions are delivered from the fetcher's worker, so listener
methods may be called from a thread other than the one feeding samples.
"""

from __future__ import annotations
import enum
import logging
import threading
from concurrent.futures import Future
from typing import Optional, Protocol, Set

from PIL import Image

from streetcam.cache import CoordinateCache
from streetcam.config import DEFAULT_MIN_DISTANCE_M, UPDATE_INTERVAL_S
from streetcam.fetcher import FetchError
from streetcam.geo import Coordinate, distance
from streetcam.positions import PositionSource

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self, coord: Coordinate) -> Future: ...


class MonitorState(enum.Enum):
    IDLE = "idle"
    MONITORING = "monitoring"


class MonitorListener:
    """Receives monitor notifications.  Override the methods you need."""

    def image_ready(self, image: Image.Image) -> None:
        logger.debug("image_ready: %sx%s", *image.size)

    def loading_started(self) -> None:
        logger.debug("loading_started")

    def loading_failed(self, message: str) -> None:
        logger.debug("loading_failed: %s", message)


class PositionMonitor:
    """Turn a position stream into street-level images.

    Parameters
    ----------
    source : PositionSource
        Provides samples once :meth:`start` is called.
    cache : CoordinateCache
        Checked before any network access.
    fetcher : Fetcher
        Anything with ``fetch(coord) -> Future`` resolving to an image,
        normally an :class:`~streetcam.fetcher.ImageryFetcher` sharing *cache*.
    listener : MonitorListener, optional
        Notification sink; a logging-only listener is used when omitted.
    min_distance : float
        Distance gate in meters (default 100).
    update_interval : float
        Reporting interval requested from *source* on :meth:`start`
        (default 5 seconds).
    """

    def __init__(self, source: PositionSource, cache: CoordinateCache,
                 fetcher: Fetcher, listener: Optional[MonitorListener] = None,
                 min_distance: float = DEFAULT_MIN_DISTANCE_M,
                 update_interval: float = UPDATE_INTERVAL_S):
        self.source = source
        self.cache = cache
        self.fetcher = fetcher
        self.listener = listener or MonitorListener()
        self.min_distance = float(min_distance)
        self.update_interval = float(update_interval)
        self.last_coordinate = Coordinate(0.0, 0.0)
        self.state = MonitorState.IDLE
        self._in_flight: Set[Future] = set()
        self._in_flight_cond = threading.Condition()

    @property
    def monitoring(self) -> bool:
        return self.state is MonitorState.MONITORING

    def start(self) -> None:
        """Subscribe to the position source (no-op when already monitoring)."""
        if self.monitoring:
            return
        self.state = MonitorState.MONITORING
        self.source.set_update_interval(self.update_interval)
        self.source.start(self.on_position)
        logger.info("Monitoring started (min distance %.1f m)", self.min_distance)

    def stop(self) -> None:
        """Unsubscribe.  Fetches already dispatched still complete and notify."""
        if not self.monitoring:
            return
        self.state = MonitorState.IDLE
        self.source.stop()
        logger.info("Monitoring stopped")

    def on_position(self, coord: Coordinate) -> Optional[Future]:
        """Handle one position sample.

        Returns the fetch future when a download was dispatched, otherwise
        ``None`` (sample ignored, or served from the cache).
        """
        if not self.monitoring:
            return None
        logger.debug("GPS updated: lat=%s lon=%s", coord.lat, coord.lon)

        if distance(self.last_coordinate, coord) < self.min_distance:
            return None
        self.last_coordinate = coord

        if self.cache.exists(coord):
            img = self.cache.read(coord)
            if img is not None:
                logger.info("Using cached image for %s", coord)
                self.listener.image_ready(img)
                return None
            logger.warning("Cache entry for %s is unreadable, fetching again", coord)

        self.listener.loading_started()
        future = self.fetcher.fetch(coord)
        with self._in_flight_cond:
            self._in_flight.add(future)
        future.add_done_callback(self._fetch_done)
        return future

    def in_flight(self) -> int:
        """Number of dispatched fetches that have not completed yet."""
        with self._in_flight_cond:
            return len(self._in_flight)

    def wait_for_fetches(self, timeout: Optional[float] = None) -> bool:
        """Block until every dispatched fetch has been reported.

        Returns ``False`` if *timeout* expired first.
        """
        with self._in_flight_cond:
            return self._in_flight_cond.wait_for(lambda: not self._in_flight, timeout)

    def _fetch_done(self, future: Future) -> None:
        try:
            try:
                img = future.result()
            except FetchError as e:
                logger.info("Fetch failed: %s", e)
                self.listener.loading_failed(str(e))
                return
            except Exception as e:
                logger.exception("Unexpected error while fetching")
                self.listener.loading_failed(str(e))
                return
            self.listener.image_ready(img)
        finally:
            with self._in_flight_cond:
                self._in_flight.discard(future)
                self._in_flight_cond.notify_all()
