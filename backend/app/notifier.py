"""
Signal webhook notifier.

Posts a colored embed to a Discord-compatible webhook whenever a completion
looks like a trading signal. Best-effort: delivery failures are logged and
never reach the caller.

Setup:
  1. Server Settings -> Integrations -> Webhooks -> New Webhook
  2. Copy the webhook URL
  3. Set env var: ATP_WEBHOOK_URL
"""

import http.client
import json
import logging
from datetime import datetime, timezone
from urllib.error import URLError
from urllib.request import Request, urlopen

from app.config import settings
from app.engines.signal_parser import looks_like_signal
from app.errors import NotifyError

logger = logging.getLogger(__name__)

COLOR_BUY = 0x10B981  # green
COLOR_SELL = 0xEF4444  # red
COLOR_NEUTRAL = 0x6B7280  # gray

EMBED_TITLE = "New AI Trading Signal"


def signal_color(raw_text: str) -> int:
    """Embed color from the same substring heuristic as the trigger."""
    if "BUY" in raw_text:
        return COLOR_BUY
    if "SELL" in raw_text:
        return COLOR_SELL
    return COLOR_NEUTRAL


def build_embed(raw_text: str, trading_mode: str) -> dict:
    return {
        "title": EMBED_TITLE,
        "description": raw_text[: settings.webhook_max_chars],
        "color": signal_color(raw_text),
        "footer": {"text": f"Trading Mode: {trading_mode}"},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _post_webhook(url: str, payload: dict) -> None:
    try:
        req = Request(
            url,
            data=json.dumps(payload).encode(),
            headers={"Content-Type": "application/json", "User-Agent": "AITradePro/1.0"},
        )
        with urlopen(req, timeout=10) as resp:
            if not 200 <= resp.status < 300:
                raise NotifyError(f"Webhook returned HTTP {resp.status}")
    except (URLError, OSError, ValueError, http.client.HTTPException) as e:
        raise NotifyError(str(e) or type(e).__name__) from e


def notify_signal(raw_text: str, trading_mode: str) -> bool:
    """Send a signal embed. Returns True on success, False when skipped or failed."""
    if not looks_like_signal(raw_text):
        return False

    url = settings.webhook_url
    if not url or not settings.webhook_enabled:
        logger.debug("Webhook not configured, skipping notification")
        return False

    try:
        _post_webhook(url, {"embeds": [build_embed(raw_text, trading_mode)]})
    except NotifyError as e:
        logger.warning("Failed to send signal webhook: %s", e)
        return False

    logger.info("webhook_sent", extra={"trading_mode": trading_mode})
    return True
