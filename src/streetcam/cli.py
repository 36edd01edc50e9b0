"""
streetcam.cli — Command-line interface for streetcam.

Provides ``streetcam fetch``, ``streetcam watch``, ``streetcam distance``
and ``streetcam cache-info`` commands.

Options shared with the library defaults can also be set through the
``STREETCAM_*`` environment variables listed in :mod:`streetcam.config`.
"""

from __future__ import annotations
import sys
import threading
from pathlib import Path
import click

from streetcam.config import (API_BASE_URL, DEFAULT_CACHE_DIR,
                              DEFAULT_MIN_DISTANCE_M, UPDATE_INTERVAL_S)
from streetcam.geo import Coordinate

cache_dir_option = click.option(
    "--cache-dir", type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_CACHE_DIR, envvar="STREETCAM_CACHE_DIR", show_default=True,
    help="Directory holding cached images")
api_url_option = click.option(
    "--api-url", default=API_BASE_URL, envvar="STREETCAM_API_URL", show_default=True,
    help="OpenStreetCam API root")
timeout_option = click.option(
    "--timeout", type=float, default=None, envvar="STREETCAM_TIMEOUT",
    help="HTTP timeout in seconds (default: none)")


class EchoListener:
    """Prints monitor notifications, optionally saving each image."""

    def __init__(self, save_dir: Path | None = None):
        self.save_dir = save_dir
        self.count = 0
        self._lock = threading.Lock()

    def image_ready(self, image) -> None:
        with self._lock:
            self.count += 1
            n = self.count
        click.echo(f"🖼  image ready ({image.size[0]}x{image.size[1]})")
        if self.save_dir:
            self.save_dir.mkdir(parents=True, exist_ok=True)
            path = self.save_dir / f"{n:04d}.jpg"
            image.convert("RGB").save(path, quality=90)
            click.echo(f"💾 Saved to {path}")

    def loading_started(self) -> None:
        click.echo("⏳ loading...")

    def loading_failed(self, message: str) -> None:
        click.echo(f"❌ {message}", err=True)


# ---------------------------------------------------------------------------
# CLI commands
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="streetcam")
@click.option("-v", "--verbose", count=True, help="-v for INFO, -vv for DEBUG logging")
@click.option("--log-json", is_flag=True, help="Emit log records as JSON lines")
def main(verbose, log_json):
    """📷 streetcam — Street-level photos for where you are."""
    from streetcam.logging_setup import setup_logging
    level = {0: None, 1: "INFO"}.get(verbose, "DEBUG")
    if level is None and not log_json:
        level = "WARNING"
    setup_logging(level, json_output=log_json)


@main.command()
@click.argument("lat", type=float)
@click.argument("lon", type=float)
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Also save the image to this file")
@cache_dir_option
@api_url_option
@timeout_option
def fetch(lat, lon, output, cache_dir, api_url, timeout):
    """Get the photo nearest to LAT LON (from cache or the network).

    Negative values need ``--`` first, e.g. ``streetcam fetch -- -33.86 151.21``.

    Examples:

        streetcam fetch 52.516275 13.377704

        streetcam fetch 48.8584 2.2945 -o eiffel.jpg
    """
    from streetcam.cache import CoordinateCache
    from streetcam.fetcher import FetchError, ImageryFetcher

    coord = Coordinate(lat, lon)
    cache = CoordinateCache(cache_dir)

    img = cache.read(coord) if cache.exists(coord) else None
    if img is not None:
        click.echo(f"📍 {coord} → cached {cache.path_for(coord)}")
    else:
        click.echo(f"📍 {coord} → fetching...")
        with ImageryFetcher(cache, base_url=api_url, timeout=timeout) as fetcher:
            try:
                img = fetcher.fetch(coord).result()
            except FetchError as e:
                click.echo(f"❌ {e}", err=True)
                sys.exit(1)
        click.echo(f"✅ Cached to {cache.path_for(coord)}")

    click.echo(f"   {img.size[0]}x{img.size[1]} {img.mode}")
    if output:
        img.convert("RGB").save(output)
        click.echo(f"💾 Saved to {output}")


@main.command()
@click.argument("track", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--lat-col", default="lat", help="Latitude column name")
@click.option("--lon-col", default="lon", help="Longitude column name")
@click.option("-d", "--min-distance", type=float, default=DEFAULT_MIN_DISTANCE_M,
              envvar="STREETCAM_MIN_DISTANCE", show_default=True,
              help="Minimum movement in meters before a new image is loaded")
@click.option("-i", "--interval", type=float, default=UPDATE_INTERVAL_S, show_default=True,
              help="Seconds between replayed positions")
@click.option("-o", "--output-dir", type=click.Path(file_okay=False, path_type=Path),
              default=None, help="Save every ready image into this directory")
@cache_dir_option
@api_url_option
@timeout_option
def watch(track, lat_col, lon_col, min_distance, interval, output_dir,
          cache_dir, api_url, timeout):
    """Replay a CSV/TSV position TRACK and load images as it moves.

    Examples:

        streetcam watch drive.csv

        streetcam watch drive.tsv -d 250 -i 0.5 -o frames/
    """
    from streetcam.cache import CoordinateCache
    from streetcam.fetcher import ImageryFetcher
    from streetcam.monitor import PositionMonitor
    from streetcam.positions import ReplayPositionSource, load_track

    try:
        coords = load_track(track, lat_col=lat_col, lon_col=lon_col)
    except ValueError as e:
        raise click.ClickException(str(e))
    if not coords:
        click.echo("Track is empty.")
        return

    cache = CoordinateCache(cache_dir)
    source = ReplayPositionSource(coords)
    listener = EchoListener(output_dir)

    with ImageryFetcher(cache, base_url=api_url, timeout=timeout) as fetcher:
        monitor = PositionMonitor(source, cache, fetcher, listener=listener,
                                  min_distance=min_distance, update_interval=interval)
        click.echo(f"🚗 Replaying {len(coords)} positions from {track}")
        monitor.start()
        try:
            source.join()
        except KeyboardInterrupt:
            click.echo("Interrupted.")
        finally:
            monitor.stop()
        monitor.wait_for_fetches()

    click.echo(f"Done: {listener.count} images.")


@main.command()
@click.argument("lat1", type=float)
@click.argument("lon1", type=float)
@click.argument("lat2", type=float)
@click.argument("lon2", type=float)
def distance(lat1, lon1, lat2, lon2):
    """Great-circle distance in meters between two coordinates.

    Examples:

        streetcam distance 0 0 0.001 0
    """
    from streetcam.geo import distance as haversine
    meters = haversine(Coordinate(lat1, lon1), Coordinate(lat2, lon2))
    click.echo(f"{meters:.3f} m")


@main.command(name="cache-info")
@cache_dir_option
def cache_info(cache_dir):
    """Show cache location and size."""
    from streetcam.cache import CoordinateCache
    count, size_mb = CoordinateCache(cache_dir).size()
    click.echo(f"📁 Cache directory: {cache_dir}")
    click.echo(f"   Files: {count}")
    click.echo(f"   Size:  {size_mb:.1f} MB")


if __name__ == "__main__":
    main()
