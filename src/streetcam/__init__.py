"""
streetcam: Street-level photos for a moving device, cached by coordinate.

Quick start::

    from streetcam import (Coordinate, CoordinateCache, ImageryFetcher,
                           PositionMonitor, ReplayPositionSource, load_track)

    cache = CoordinateCache("~/.zap_streetview_cache")
    fetcher = ImageryFetcher(cache)

    # Single coordinate
    img = fetcher.fetch(Coordinate(52.5163, 13.3777)).result()
    img.save("brandenburger-tor.jpg")

    # Follow a position stream
    source = ReplayPositionSource(load_track("track.csv"))
    monitor = PositionMonitor(source, cache, fetcher, listener=MyListener())
    monitor.start()
"""
__version__ = "0.1.0"

from streetcam.geo import Coordinate, distance, cache_key  # noqa: F401
from streetcam.cache import CoordinateCache  # noqa: F401
from streetcam.fetcher import ImageryFetcher, FetchError  # noqa: F401
from streetcam.monitor import PositionMonitor, MonitorListener, MonitorState  # noqa: F401
from streetcam.positions import PositionSource, ReplayPositionSource, load_track  # noqa: F401
