"""
Shared fixtures for FlareSight tests.
"""

import pytest

from flaresight.detection.models import ClassificationResult

from tests.helpers import FakeClock, FakeFrameSource


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def frame_source():
    return FakeFrameSource()


@pytest.fixture
def sunset_result():
    return ClassificationResult(label="Sunset", confidence="high")
