import pytest

from streetcam.cache import CoordinateCache
from tests.helpers import make_image


@pytest.fixture
def cache(tmp_path):
    return CoordinateCache(tmp_path / "cache")


@pytest.fixture
def sample_image():
    return make_image()
