"""Lightweight Telegram notification for hold loading sessions.

Sends plain-text messages to a Telegram channel via the Bot API for:
- Session start
- Internal faults reported by the hold loader
- Final loading report

No retry logic; notifications are non-critical.
"""

from __future__ import annotations

import os
from typing import Any

import httpx


TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


async def send_telegram(
    message: str,
    chat_id: str | None = None,
    token: str | None = None,
) -> bool:
    """Send a plain-text message to a Telegram channel.

    Args:
        message: Text to send.
        chat_id: Telegram chat ID. Defaults to TELEGRAM_CHAT_ID env var.
        token: Bot token. Defaults to TELEGRAM_BOT_TOKEN env var.

    Returns:
        True if message was sent successfully, False otherwise (including
        when no token or chat ID is configured).
    """
    token = token or os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if not token:
        return False

    chat_id = chat_id or os.environ.get("TELEGRAM_CHAT_ID", "")
    if not chat_id:
        return False

    url = TELEGRAM_API.format(token=token)
    payload = {"chat_id": chat_id, "text": message}

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(url, json=payload)
            data = resp.json()
            return bool(data.get("ok", False))
    except (httpx.HTTPError, ValueError):
        return False


def format_session_start(
    session_id: str,
    hold_volume: float,
    window: tuple[float, float],
    bar_count: int,
) -> str:
    """Format session start notification message.

    Example:
        >>> print(format_session_start("s1", 1000, (10, 5), 15))
        Loading Started
        Session: s1
        Hold volume: 1000.00
        Window: 10.00 x 5.00
        Bars: 15
    """
    return (
        f"Loading Started\n"
        f"Session: {session_id}\n"
        f"Hold volume: {hold_volume:.2f}\n"
        f"Window: {window[0]:.2f} x {window[1]:.2f}\n"
        f"Bars: {bar_count}"
    )


def format_error(error_type: str, error_message: str, context: dict[str, Any] | None = None) -> str:
    """Format error notification message.

    Example:
        >>> print(format_error("search_failed", "No orientation found", {"bar": 3}))
        Error: search_failed
        No orientation found
        Context: bar=3
    """
    lines = [
        f"Error: {error_type}",
        error_message,
    ]
    if context:
        ctx_str = ", ".join(f"{k}={v}" for k, v in context.items())
        lines.append(f"Context: {ctx_str}")
    return "\n".join(lines)


def format_final_summary(
    hold_volume: float,
    loaded_volume: float,
    dropped_volume: float,
    remaining_volume: float,
    loaded_bars: int,
    dropped_bars: int,
    errors: int,
) -> str:
    """Format final loading report.

    Example:
        >>> print(format_final_summary(1000, 250, 1831, 750, 2, 2, 0))
        Loading Complete
        Hold: 1000.00
        Loaded: 250.00 (2 bars)
        Dropped: 1831.00 (2 bars)
        Remaining: 750.00
        Errors: 0
    """
    return (
        f"Loading Complete\n"
        f"Hold: {hold_volume:.2f}\n"
        f"Loaded: {loaded_volume:.2f} ({loaded_bars} bars)\n"
        f"Dropped: {dropped_volume:.2f} ({dropped_bars} bars)\n"
        f"Remaining: {remaining_volume:.2f}\n"
        f"Errors: {errors}"
    )
