import pytest

from conftest import utc

import rss_relay.runner as runner
from rss_relay.delivery import DryRunClient, TelegramClient
from rss_relay.models import FeedCategory, FeedSource
from rss_relay.runner import RunConfig, execute


def _categories():
    return [
        FeedCategory(
            name="weekly",
            destination=-100,
            sources=(FeedSource(title="Feed", url="https://feed.example.com"),),
        )
    ]


def test_execute_dry_run_formats_and_records(monkeypatch, make_entry):
    captured = {}

    def fake_fetch(source, timeout=None):
        captured["timeout"] = timeout
        return [
            make_entry(title="Fresh", link="https://e.com/1", published=utc(2024, 1, 1, 12)),
            make_entry(title="Stale", link="https://e.com/2", published=utc(2023, 1, 1)),
        ]

    monkeypatch.setattr(runner, "fetch_feed_entries", fake_fetch)
    clients = []
    original = runner._build_client

    def recording_build(config):
        client = original(config)
        clients.append(client)
        return client

    monkeypatch.setattr(runner, "_build_client", recording_build)

    result = execute(
        RunConfig(
            categories=_categories(),
            dry_run=True,
            now=utc(2024, 1, 2),
            request_timeout=4.0,
        )
    )

    assert captured["timeout"] == 4.0
    assert isinstance(clients[0], DryRunClient)
    assert [m.text for m in clients[0].sent] == ["<b>Fresh</b>\n\nhttps://e.com/1"]
    assert result.window.start == utc(2024, 1, 1)
    assert result.summary.delivered == 1
    assert result.output_text == "weekly: 1 selected, 1 delivered, 0 failed, 0 feed errors"


def test_execute_requires_token_unless_dry_run():
    with pytest.raises(RuntimeError):
        execute(RunConfig(categories=_categories(), now=utc(2024, 1, 2)))


def test_build_client_uses_telegram_with_token():
    client = runner._build_client(RunConfig(bot_token="123:abc"))
    assert isinstance(client, TelegramClient)


def test_execute_applies_window_settings(monkeypatch):
    monkeypatch.setattr(runner, "fetch_feed_entries", lambda source, timeout=None: [])

    result = execute(
        RunConfig(
            categories=_categories(),
            dry_run=True,
            now=utc(2024, 1, 2, 10, 30),
            window_hours=90,
            align_to_hour=True,
        )
    )

    assert result.window.start == utc(2023, 12, 29, 16)
    assert result.window.end == utc(2024, 1, 2, 10)
    assert result.summary.delivered == 0
