"""Shared fixtures for analytics tests."""

from datetime import timedelta

import pytest

from helpers import NOW, make_event


@pytest.fixture
def example_events():
    """Two visitors: "a" views two pages 5 seconds apart, "b" bounces."""
    t0 = NOW - timedelta(hours=2)
    return [
        make_event("a", t0, "/"),
        make_event("a", t0 + timedelta(seconds=5), "/about"),
        make_event("b", t0, "/"),
    ]
