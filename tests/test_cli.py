"""
Tests for the click command-line interface
"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from streetcam.cache import CoordinateCache
from streetcam.cli import main
from streetcam.fetcher import NoImageFoundError
from streetcam.geo import Coordinate
from tests.helpers import make_image


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


class TestDistanceCommand:

    def test_distance(self, runner):
        result = runner.invoke(main, ["distance", "0", "0", "0.001", "0"])
        assert result.exit_code == 0
        assert result.output.strip() == "111.195 m"


class TestCacheInfoCommand:

    def test_empty_cache(self, runner, cache_dir):
        result = runner.invoke(main, ["cache-info", "--cache-dir", str(cache_dir)])
        assert result.exit_code == 0
        assert "Files: 0" in result.output
        assert cache_dir.is_dir()

    def test_env_var(self, runner, cache_dir):
        CoordinateCache(cache_dir).write(Coordinate(1.0, 2.0), make_image())
        result = runner.invoke(main, ["cache-info"], env={"STREETCAM_CACHE_DIR": str(cache_dir)})
        assert result.exit_code == 0
        assert "Files: 1" in result.output


class TestFetchCommand:

    def test_cached(self, runner, cache_dir, tmp_path):
        CoordinateCache(cache_dir).write(Coordinate(10.0, 20.0), make_image(size=(30, 20)))
        out = tmp_path / "out.jpg"

        with patch("streetcam.fetcher.ImageryFetcher.fetch_now") as fetch_now:
            result = runner.invoke(main, ["fetch", "10", "20", "--cache-dir", str(cache_dir),
                                          "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert "cached" in result.output
        assert "30x20" in result.output
        assert out.exists()
        fetch_now.assert_not_called()

    def test_fetched(self, runner, cache_dir):
        def fake_fetch(self, coord):
            img = make_image(size=(12, 8))
            self.cache.write(coord, img)
            return img

        with patch("streetcam.fetcher.ImageryFetcher.fetch_now", fake_fetch):
            result = runner.invoke(main, ["fetch", "--cache-dir", str(cache_dir), "--", "-33.8568", "151.2153"])

        assert result.exit_code == 0, result.output
        assert "12x8" in result.output
        assert CoordinateCache(cache_dir).exists(Coordinate(-33.8568, 151.2153))

    def test_failure_exits_nonzero(self, runner, cache_dir):
        with patch("streetcam.fetcher.ImageryFetcher.fetch_now", side_effect=NoImageFoundError()):
            result = runner.invoke(main, ["fetch", "10", "20", "--cache-dir", str(cache_dir)])

        assert result.exit_code == 1
        assert "No nearby OpenStreetCam image found." in result.output


class TestWatchCommand:

    def test_replays_track(self, runner, cache_dir, tmp_path):
        cache = CoordinateCache(cache_dir)
        cache.write(Coordinate(0.0, 0.002), make_image())
        track = tmp_path / "track.csv"
        # second point is ~55 m from the first and gets gated out
        track.write_text("lat,lon\n0.0,0.002\n0.0,0.0025\n0.0,0.004\n")
        frames = tmp_path / "frames"

        def fake_fetch(self, coord):
            return make_image(size=(5, 5))

        with patch("streetcam.fetcher.ImageryFetcher.fetch_now", fake_fetch):
            result = runner.invoke(main, ["watch", str(track), "-i", "0", "-o", str(frames),
                                          "--cache-dir", str(cache_dir)])

        assert result.exit_code == 0, result.output
        assert result.output.count("image ready") == 2
        assert result.output.count("loading...") == 1
        assert "Done: 2 images." in result.output
        assert len(list(frames.iterdir())) == 2

    def test_fetch_failures_are_printed(self, runner, cache_dir, tmp_path):
        track = tmp_path / "track.csv"
        track.write_text("lat,lon\n10,20\n")

        with patch("streetcam.fetcher.ImageryFetcher.fetch_now", side_effect=NoImageFoundError()):
            result = runner.invoke(main, ["watch", str(track), "-i", "0", "--cache-dir", str(cache_dir)])

        assert result.exit_code == 0
        assert "No nearby OpenStreetCam image found." in result.output
        assert "Done: 0 images." in result.output

    def test_bad_track(self, runner, cache_dir, tmp_path):
        track = tmp_path / "track.csv"
        track.write_text("x,y\n1,2\n")
        result = runner.invoke(main, ["watch", str(track), "--cache-dir", str(cache_dir)])
        assert result.exit_code == 1
        assert "Column 'lat' not found" in result.output

    def test_empty_track(self, runner, cache_dir, tmp_path):
        track = tmp_path / "track.csv"
        track.write_text("lat,lon\n")
        result = runner.invoke(main, ["watch", str(track), "--cache-dir", str(cache_dir)])
        assert result.exit_code == 0
        assert "Track is empty." in result.output
