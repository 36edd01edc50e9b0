"""
streetcam.config — Defaults and environment-driven settings.

The library classes always take explicit values; only the CLI consults
the environment.

Environment variables
---------------------
``STREETCAM_CACHE_DIR``     cache directory (default ``~/.zap_streetview_cache``)
``STREETCAM_MIN_DISTANCE``  minimum movement in meters (default ``100``)
``STREETCAM_API_URL``       imagery service base URL
``STREETCAM_TIMEOUT``       HTTP timeout in seconds (default: none)
"""

from __future__ import annotations
from pathlib import Path

#: Default cache directory
DEFAULT_CACHE_DIR = Path.home() / ".zap_streetview_cache"

#: Samples closer than this to the last accepted one are ignored (meters).
DEFAULT_MIN_DISTANCE_M = 100.0

#: Position source reporting interval while monitoring (seconds).
UPDATE_INTERVAL_S = 5.0

#: OpenStreetCam (KartaView) API root.
API_BASE_URL = "https://api.openstreetcam.org"

#: ``zoomLevel`` sent with every photo search.
ZOOM_LEVEL = 15

#: JPEG quality for cached images.
JPEG_QUALITY = 75

