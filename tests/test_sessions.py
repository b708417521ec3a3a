"""Tests for session metrics."""

from datetime import timedelta

from pulse_analytics.core.engine import avg_session_duration, bounce_rate, session_stats
from pulse_analytics.core.models import SessionStats

from helpers import NOW, make_event


class TestBounceRate:
    """Test bounce_rate."""

    def test_example_half_bounce(self, example_events):
        """One of two visitors viewed a single page."""
        assert bounce_rate(example_events) == 50.0

    def test_no_visitors_is_zero(self):
        """No division by zero on an empty slice."""
        assert bounce_rate([]) == 0.0

    def test_all_single_page_is_100(self):
        events = [make_event("a"), make_event("b"), make_event("c")]
        assert bounce_rate(events) == 100.0

    def test_all_multi_page_is_0(self):
        events = [make_event("a"), make_event("a"), make_event("b"), make_event("b")]
        assert bounce_rate(events) == 0.0

    def test_rounds_to_one_decimal(self):
        events = [make_event("a"), make_event("b"), make_event("b"), make_event("c"), make_event("c")]
        assert bounce_rate(events) == 33.3

    def test_within_bounds(self):
        events = [make_event(f"v{i % 7}") for i in range(20)]
        assert 0 <= bounce_rate(events) <= 100


class TestAvgSessionDuration:
    """Test avg_session_duration."""

    def test_example_five_seconds(self, example_events):
        """Only visitor "a" qualifies, with a 5 second span."""
        assert avg_session_duration(example_events) == 5

    def test_empty_is_zero(self):
        assert avg_session_duration([]) == 0

    def test_single_event_visitors_do_not_count(self):
        events = [make_event("a"), make_event("b"), make_event("c")]
        assert avg_session_duration(events) == 0

    def test_unsorted_timestamps(self):
        """Span is measured from earliest to latest event."""
        events = [
            make_event("a", NOW - timedelta(seconds=0)),
            make_event("a", NOW - timedelta(seconds=10)),
            make_event("a", NOW - timedelta(seconds=4)),
        ]
        assert avg_session_duration(events) == 10

    def test_span_of_one_hour_excluded(self):
        """Spans of an hour or more are not sessions and are not clamped."""
        events = [
            make_event("a", NOW - timedelta(seconds=3599)),
            make_event("a", NOW),
            make_event("b", NOW - timedelta(hours=1)),
            make_event("b", NOW),
        ]
        assert avg_session_duration(events) == 3599

    def test_only_long_sessions_is_zero(self):
        events = [make_event("a", NOW - timedelta(hours=2)), make_event("a", NOW)]
        assert avg_session_duration(events) == 0

    def test_average_is_floored(self):
        """1.5s and 2s average to 1.75s, reported as 1."""
        events = [
            make_event("a", NOW - timedelta(milliseconds=1500)),
            make_event("a", NOW),
            make_event("b", NOW - timedelta(seconds=2)),
            make_event("b", NOW),
        ]
        assert avg_session_duration(events) == 1

    def test_sub_millisecond_remainder_ignored(self):
        events = [
            make_event("a", NOW - timedelta(microseconds=2_999_999)),
            make_event("a", NOW),
        ]
        assert avg_session_duration(events) == 2


class TestSessionStats:
    """Test the combined session_stats result."""

    def test_returns_model(self, example_events):
        stats = session_stats(example_events)

        assert isinstance(stats, SessionStats)
        assert stats.bounce_rate == 50.0
        assert stats.avg_session_duration == 5

    def test_empty(self):
        assert session_stats([]) == SessionStats(bounce_rate=0.0, avg_session_duration=0)
