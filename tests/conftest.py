"""
pytest configuration and fixtures for svg2features tests
"""
import pytest

from config import BuildOptions
from curve_normalizer import CurveNormalizer
from path_classifier import PathClassifier, RawPath
from path_parser import PathCommandParser

SQUARE = "M0,0 L10,0 L10,10 L0,10 Z"
TRIANGLE = "M0,0 L10,0 L10,10 L0,0"
OPEN_POLYLINE = "M0,0 L10,0 L10,10"


def xy(point):
    """Plain tuple for a Vec2"""
    return (point.x, point.y)


@pytest.fixture
def options():
    """Default build options"""
    return BuildOptions()


@pytest.fixture
def segments_for():
    """Parse and normalize one path's command string into segments"""
    parser = PathCommandParser()
    normalizer = CurveNormalizer()

    def _segments(data):
        return normalizer.normalize(parser.parse(data))

    return _segments


@pytest.fixture
def make_path(segments_for):
    """Build a classified Path from command data plus RawPath metadata"""

    def _make(data, units='mm', **metadata):
        raw = RawPath(data=data, **metadata)
        return PathClassifier(units=units).classify(segments_for(data), raw)

    return _make
