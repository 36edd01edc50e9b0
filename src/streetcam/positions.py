"""
streetcam.positions — Position sources feeding a :class:`~streetcam.monitor.PositionMonitor`.

A source reports :class:`~streetcam.geo.Coordinate` samples to a callback
at a configured interval between :meth:`PositionSource.start` and
:meth:`PositionSource.stop`.  Real GNSS receivers plug in by subclassing
:class:`PositionSource`; :class:`ReplayPositionSource` replays a recorded
track, e.g. one loaded with :func:`load_track`.
"""

from __future__ import annotations
import csv
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from streetcam.geo import Coordinate

logger = logging.getLogger(__name__)

PositionCallback = Callable[[Coordinate], None]


class PositionSource(ABC):
    """Abstract periodic position provider."""

    def __init__(self) -> None:
        self.update_interval = 1.0

    def set_update_interval(self, seconds: float) -> None:
        self.update_interval = float(seconds)

    @abstractmethod
    def start(self, callback: PositionCallback) -> None:
        """Begin delivering samples to *callback*."""

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering samples.  Safe to call when not started."""


class ReplayPositionSource(PositionSource):
    """
    Replay a fixed list of coordinates, one per update interval, on a
    background thread.  The first sample is delivered immediately.

    Parameters
    ----------
    coords : iterable of Coordinate
        Samples to replay, in order.
    loop : bool, optional
        Start over after the last sample instead of stopping (default False).

    Each :meth:`start` gets its own stop event, so a replay thread still
    inside a slow callback after :meth:`stop` exits once the callback
    returns and never delivers again.
    """

    def __init__(self, coords: Iterable[Coordinate], loop: bool = False):
        super().__init__()
        self.coords: List[Coordinate] = list(coords)
        self.loop = loop
        self._stop = threading.Event()
        self._stop.set()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return (self._thread is not None and self._thread.is_alive()
                and not self._stop.is_set())

    def start(self, callback: PositionCallback) -> None:
        if self.running:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(callback, self._stop),
                                        name="streetcam-replay", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)
        if thread is not None and not thread.is_alive():
            self._thread = None

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for a non-looping replay to run out of samples."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(self, callback: PositionCallback, stop: threading.Event) -> None:
        while not stop.is_set():
            for coord in self.coords:
                if stop.is_set():
                    return
                callback(coord)
                if stop.wait(self.update_interval):
                    return
            if not self.loop or not self.coords:
                return


def load_track(path: Union[str, Path], lat_col: str = "lat",
               lon_col: str = "lon") -> List[Coordinate]:
    """Read a track of coordinates from a CSV or TSV file.

    Parameters
    ----------
    path : str or Path
        File with a header row; ``.tsv`` files are tab separated.
    lat_col, lon_col : str
        Column names holding latitude and longitude in decimal degrees.

    Raises
    ------
    ValueError
        If a column is missing or a value is not a number.
    """
    path = Path(path)
    sep = "\t" if path.suffix.lower() == ".tsv" else ","
    coords = []
    with open(path, newline="") as f:
        reader = csv.DictReader(f, delimiter=sep)
        fields = reader.fieldnames or []
        for col in (lat_col, lon_col):
            if col not in fields:
                raise ValueError(f"Column '{col}' not found in {path} (have: {fields})")
        for line_no, row in enumerate(reader, start=2):
            try:
                coords.append(Coordinate(float(row[lat_col]), float(row[lon_col])))
            except (TypeError, ValueError) as e:
                raise ValueError(f"{path}:{line_no}: bad coordinate {row!r}") from e
    logger.debug("Loaded %d positions from %s", len(coords), path)
    return coords
