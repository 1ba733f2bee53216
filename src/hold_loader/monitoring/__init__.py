"""Monitoring module for hold-loader.

Provides session metrics, report export and Telegram notifications.
"""

from .metrics import (
    BarRecord,
    SessionMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from .telegram_notifier import (
    format_error,
    format_final_summary,
    format_session_start,
    send_telegram,
)

__all__ = [
    # Metrics
    "BarRecord",
    "SessionMetrics",
    "export_to_csv",
    "export_to_json",
    "print_summary",
    # Telegram
    "send_telegram",
    "format_session_start",
    "format_error",
    "format_final_summary",
]
