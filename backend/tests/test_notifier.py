import http.client
import json
from urllib.error import URLError

import pytest

from app import notifier
from app.config import settings
from app.errors import NotifyError
from app.notifier import COLOR_BUY, COLOR_NEUTRAL, COLOR_SELL, build_embed, notify_signal, signal_color


@pytest.fixture
def webhook(monkeypatch):
    monkeypatch.setattr(settings, "webhook_url", "https://discord.test/api/webhooks/1/abc")
    sent = []
    monkeypatch.setattr(notifier, "_post_webhook", lambda url, payload: sent.append((url, payload)))
    return sent


def test_signal_triggers_green_embed_with_mode_footer(webhook, signal_text):
    assert notify_signal(signal_text, "swing") is True

    assert len(webhook) == 1
    url, payload = webhook[0]
    assert url == settings.webhook_url
    embed = payload["embeds"][0]
    assert embed["title"] == "New AI Trading Signal"
    assert embed["description"] == signal_text
    assert embed["color"] == COLOR_BUY
    assert "swing" in embed["footer"]["text"]
    assert "T" in embed["timestamp"]


def test_colors_follow_substring_heuristic():
    assert signal_color("**SIGNAL**: SELL") == COLOR_SELL
    assert signal_color("**SIGNAL**: WAIT") == COLOR_NEUTRAL
    # Any BUY anywhere wins, even inside a negation
    assert signal_color("**SIGNAL**: I would NOT BUY, SELL instead") == COLOR_BUY


def test_description_truncated():
    embed = build_embed("SIGNAL " + "x" * 10_000, "scalping")
    assert len(embed["description"]) == settings.webhook_max_chars == 4096


def test_non_signal_text_is_not_sent(webhook):
    assert notify_signal("Markets are quiet today.", "scalping") is False
    assert webhook == []


def test_unconfigured_webhook_skips(monkeypatch):
    def _boom(url, payload):
        raise AssertionError("should not post")

    monkeypatch.setattr(notifier, "_post_webhook", _boom)
    assert notify_signal("**SIGNAL**: BUY", "scalping") is False


def test_disabled_webhook_skips(webhook, monkeypatch):
    monkeypatch.setattr(settings, "webhook_enabled", False)
    assert notify_signal("**SIGNAL**: BUY", "scalping") is False
    assert webhook == []


def test_delivery_failure_is_swallowed(monkeypatch):
    monkeypatch.setattr(settings, "webhook_url", "https://discord.test/api/webhooks/1/abc")

    def _fail(url, payload):
        raise NotifyError("HTTP 503")

    monkeypatch.setattr(notifier, "_post_webhook", _fail)
    assert notify_signal("**SIGNAL**: SELL", "swing") is False


@pytest.mark.parametrize(
    "error",
    [
        TimeoutError("The read operation timed out"),
        http.client.RemoteDisconnected("Remote end closed connection without response"),
        URLError("Name or service not known"),
    ],
)
def test_transport_failures_are_swallowed(monkeypatch, fake_urlopen, error):
    monkeypatch.setattr(settings, "webhook_url", "https://discord.test/api/webhooks/1/abc")
    monkeypatch.setattr(notifier, "urlopen", fake_urlopen(error=error))

    assert notify_signal("**SIGNAL**: BUY", "scalping") is False


def test_malformed_webhook_url_is_swallowed(monkeypatch):
    monkeypatch.setattr(settings, "webhook_url", "discord-webhook-typo")
    assert notify_signal("**SIGNAL**: BUY", "scalping") is False


def test_non_2xx_status_is_a_failure(monkeypatch, fake_urlopen):
    monkeypatch.setattr(settings, "webhook_url", "https://discord.test/api/webhooks/1/abc")
    monkeypatch.setattr(notifier, "urlopen", fake_urlopen(status=302))

    with pytest.raises(NotifyError):
        notifier._post_webhook(settings.webhook_url, {"embeds": []})
    assert notify_signal("**SIGNAL**: SELL", "swing") is False


def test_real_post_sends_json_embed(monkeypatch, fake_urlopen, signal_text):
    monkeypatch.setattr(settings, "webhook_url", "https://discord.test/api/webhooks/1/abc")
    requests = []
    monkeypatch.setattr(notifier, "urlopen", fake_urlopen(status=204, calls=requests))

    assert notify_signal(signal_text, "swing") is True

    req = requests[0]
    assert req.full_url == settings.webhook_url
    assert req.get_header("Content-type") == "application/json"
    embed = json.loads(req.data)["embeds"][0]
    assert embed["color"] == COLOR_BUY
    assert embed["footer"]["text"] == "Trading Mode: swing"
