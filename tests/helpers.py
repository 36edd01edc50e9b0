"""
Test image builders and fakes shared across test modules.
"""

from concurrent.futures import Future
from io import BytesIO
from unittest.mock import Mock

from PIL import Image

from streetcam.positions import PositionSource


def make_image(size=(64, 48), color=(200, 120, 40), mode="RGB"):
    return Image.new(mode, size, color)


def image_bytes(img=None, fmt="PNG"):
    buf = BytesIO()
    (img or make_image()).save(buf, format=fmt)
    return buf.getvalue()


def mock_response(json_data=None, content=b"", json_error=None, http_error=None):
    """A requests.Response stand-in."""
    resp = Mock()
    resp.content = content
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = json_data
    if http_error is not None:
        resp.raise_for_status.side_effect = http_error
    return resp


class RecordingListener:
    """Collects monitor notifications as (name, payload) tuples."""

    def __init__(self):
        self.events = []

    def image_ready(self, image):
        self.events.append(("image_ready", image))

    def loading_started(self):
        self.events.append(("loading_started", None))

    def loading_failed(self, message):
        self.events.append(("loading_failed", message))

    @property
    def names(self):
        return [name for name, _ in self.events]


class FakeSource(PositionSource):
    """Position source driven by the test via emit()."""

    def __init__(self):
        super().__init__()
        self.callback = None
        self.started = 0
        self.stopped = 0

    def start(self, callback):
        self.callback = callback
        self.started += 1

    def stop(self):
        self.callback = None
        self.stopped += 1

    def emit(self, coord):
        if self.callback is not None:
            return self.callback(coord)
        return None


class FakeFetcher:
    """Hands out unresolved futures so tests decide when a fetch completes."""

    def __init__(self):
        self.calls = []
        self.futures = []

    def fetch(self, coord):
        future = Future()
        self.calls.append(coord)
        self.futures.append(future)
        return future
