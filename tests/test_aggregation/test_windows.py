"""Tests for aggregation windows."""

from scrobbles.aggregation.windows import AggregationWindow, Grouping, TimeRange

NOW = 1_700_000_000
DAY = 86_400


def test_week_window_bounds() -> None:
    """A week window spans the seven days before now."""
    window = AggregationWindow.for_range(TimeRange.WEEK, now=NOW)
    assert window.start == NOW - 7 * DAY
    assert window.end == NOW


def test_all_time_has_no_start() -> None:
    """all_time is open on the left."""
    window = AggregationWindow.for_range(TimeRange.ALL_TIME, now=NOW)
    assert window.start is None
    assert window.contains(0)


def test_window_is_half_open() -> None:
    """Start is inclusive, end exclusive."""
    window = AggregationWindow.for_range(TimeRange.MONTH, now=NOW)
    assert window.contains(NOW - 30 * DAY)
    assert not window.contains(NOW - 30 * DAY - 1)
    assert not window.contains(NOW)


def test_grouping_policy() -> None:
    """Bucket granularity follows the range."""
    assert AggregationWindow.for_range(TimeRange.WEEK, NOW).grouping == Grouping.DAILY
    assert AggregationWindow.for_range(TimeRange.MONTH, NOW).grouping == Grouping.DAILY
    assert AggregationWindow.for_range(TimeRange.YEAR, NOW).grouping == Grouping.MONTHLY
    assert AggregationWindow.for_range(TimeRange.ALL_TIME, NOW).grouping == Grouping.YEARLY
