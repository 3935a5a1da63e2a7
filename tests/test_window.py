from datetime import datetime, timedelta, timezone

import pytest

from conftest import utc

from rss_relay.window import TimeWindow, select_entries

NOW = utc(2024, 1, 2)


def test_trailing_window_defaults_to_24_hours():
    window = TimeWindow.trailing(NOW)
    assert window.start == utc(2024, 1, 1)
    assert window.end == NOW


def test_window_is_half_open(make_entry):
    window = TimeWindow.trailing(NOW)

    assert window.includes(make_entry(published=utc(2024, 1, 1)))
    assert window.includes(make_entry(published=utc(2024, 1, 1, 0, 0, 1)))
    assert not window.includes(make_entry(published=utc(2023, 12, 31, 23, 59, 59)))
    assert not window.includes(make_entry(published=NOW))


def test_future_entries_are_excluded(make_entry):
    window = TimeWindow.trailing(NOW)
    assert not window.includes(make_entry(published=NOW + timedelta(days=365)))


def test_entries_without_timestamp_are_excluded(make_entry):
    window = TimeWindow.trailing(NOW, length=timedelta(days=365 * 100))
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert not window.includes(make_entry())
    assert not window.includes(make_entry(published=epoch, updated=epoch))


def test_updated_used_when_published_missing(make_entry):
    window = TimeWindow.trailing(NOW)
    assert window.includes(make_entry(updated=utc(2024, 1, 1, 12)))
    assert not window.includes(
        make_entry(published=utc(2023, 12, 1), updated=utc(2024, 1, 1, 12))
    )


def test_align_to_hour_floors_both_bounds():
    window = TimeWindow.trailing(
        utc(2024, 1, 2, 10, 42, 17), length=timedelta(hours=90), align_to_hour=True
    )
    assert window.start == utc(2023, 12, 29, 16)
    assert window.end == utc(2024, 1, 2, 10)


def test_non_positive_length_rejected():
    with pytest.raises(ValueError):
        TimeWindow.trailing(NOW, length=timedelta(0))


def test_select_entries_keeps_input_order(make_entry):
    window = TimeWindow.trailing(NOW)
    entries = [
        make_entry(link="b", published=utc(2024, 1, 1, 20)),
        make_entry(link="old", published=utc(2023, 1, 1)),
        make_entry(link="a", published=utc(2024, 1, 1, 5)),
    ]
    assert [e.link for e in select_entries(entries, window)] == ["b", "a"]
