"""
Tests for session metrics, report export and notification formatting.
"""

import asyncio
import csv
import json
import os
import sys

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from hold_loader.core.hold import HoldLoader
from hold_loader.monitoring import telegram_notifier
from hold_loader.monitoring.metrics import (
    CSV_FIELDS,
    BarRecord,
    SessionMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from hold_loader.monitoring.telegram_notifier import (
    format_error,
    format_final_summary,
    format_session_start,
    send_telegram,
)


@pytest.fixture
def scenario_metrics():
    """Metrics for the 10 x 10 window, 1000 volume loading scenario."""
    hold = HoldLoader(1000, 10, 10)
    metrics = SessionMetrics("session_test", 1000, 10, 10)
    for index, dims in enumerate([(5, 5, 5), (20, 5, 5), (11, 11, 11), (5, 5, 5)], start=1):
        result = hold.process(*dims)
        metrics.add_bar(BarRecord.from_result(index, result), hold.remaining_volume)
    metrics.mark_complete()
    return metrics


class TestBarRecord:
    def test_from_loaded_result(self):
        result = HoldLoader(2000, 10, 5).process(20, 4, 8)
        record = BarRecord.from_result(7, result)
        assert record.index == 7
        assert record.decision == "loaded"
        assert record.reason is None
        assert record.rotations == [1, 3]
        assert (record.final_width, record.final_height) == (8, 4)
        assert record.remaining_after == pytest.approx(1360)

    def test_from_dropped_result(self):
        result = HoldLoader(1000, 10, 10).process(11, 11, 11)
        record = BarRecord.from_result(1, result)
        assert record.decision == "dropped"
        assert record.reason == "no_fit"
        assert record.rotations == []
        assert record.final_width is None


class TestSessionMetrics:
    def test_new_session_starts_with_full_hold(self):
        assert SessionMetrics("s", 500, 1, 1).remaining_volume == 500

    def test_totals_follow_engine(self, scenario_metrics):
        m = scenario_metrics
        assert (m.total_bars, m.loaded_bars, m.dropped_bars) == (4, 2, 2)
        assert m.total_loaded_volume == pytest.approx(250)
        assert m.total_dropped_volume == pytest.approx(1831)
        assert m.remaining_volume == pytest.approx(750)
        assert m.fill_pct == pytest.approx(25.0)
        assert m.drop_reasons() == {"volume_cap": 1, "no_fit": 1}
        assert m.completed_at is not None

    def test_summary_dict_omits_records(self, scenario_metrics):
        d = scenario_metrics.to_summary_dict()
        assert "bar_records" not in d
        assert d["loaded_bars"] == 2

    def test_record_error(self):
        m = SessionMetrics("s", 1, 1, 1)
        m.record_error()
        assert m.errors_count == 1


class TestExport:
    def test_json_round_trip(self, scenario_metrics, tmp_path):
        path = tmp_path / "out" / "session.json"
        export_to_json(scenario_metrics, path)
        data = json.loads(path.read_text())
        assert data["session_id"] == "session_test"
        assert len(data["bar_records"]) == 4
        assert data["bar_records"][1]["reason"] == "volume_cap"

    def test_json_summary_only(self, scenario_metrics, tmp_path):
        path = tmp_path / "summary.json"
        export_to_json(scenario_metrics, path, include_bars=False)
        assert "bar_records" not in json.loads(path.read_text())

    def test_csv_rows(self, scenario_metrics, tmp_path):
        path = tmp_path / "bars.csv"
        export_to_csv(scenario_metrics, path)
        with path.open(newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 4
        assert rows[0]["decision"] == "loaded"
        assert rows[2]["reason"] == "no_fit"

    def test_csv_header_when_empty(self, tmp_path):
        path = tmp_path / "empty.csv"
        export_to_csv(SessionMetrics("s", 1, 1, 1), path)
        assert path.read_text().strip() == ",".join(CSV_FIELDS)

    def test_print_summary_is_final_report(self, scenario_metrics):
        text = print_summary(scenario_metrics)
        assert "LOADING COMPLETE" in text
        assert "Total hold volume: 1000.00" in text
        assert "Total loaded volume: 250.00" in text
        assert "Total dropped volume: 1831.00" in text
        assert "Remaining free volume: 750.00" in text
        assert "no_fit=1" in text


class TestNotifier:
    def test_send_without_token_returns_false(self, monkeypatch):
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        assert asyncio.run(send_telegram("hello")) is False

    def test_send_without_chat_id_returns_false(self, monkeypatch):
        monkeypatch.delenv("TELEGRAM_CHAT_ID", raising=False)
        assert asyncio.run(send_telegram("hello", token="abc")) is False

    def test_format_messages(self):
        assert "Window: 10.00 x 5.00" in format_session_start("s", 1000, (10, 5), 3)
        assert format_error("search_failed", "boom").splitlines() == [
            "Error: search_failed", "boom",
        ]
        summary = format_final_summary(1000, 250, 1831, 750, 2, 2, 0)
        assert "Remaining: 750.00" in summary


class TestSendTelegram:
    """send_telegram against a mocked Bot API transport."""

    @pytest.fixture
    def bot_api(self, monkeypatch):
        """Route the notifier's client through ``httpx.MockTransport``.

        Tests set ``state["handler"]``; every request is kept in ``state["requests"]``.
        """
        state = {"handler": None, "requests": []}
        real_client = httpx.AsyncClient

        def handler(request):
            state["requests"].append(request)
            return state["handler"](request)

        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)

        monkeypatch.setattr(telegram_notifier.httpx, "AsyncClient", client_factory)
        return state

    @pytest.mark.asyncio
    async def test_ok_response(self, bot_api):
        bot_api["handler"] = lambda request: httpx.Response(200, json={"ok": True})
        assert await send_telegram("bar 3 dropped", chat_id="42", token="abc") is True

        request = bot_api["requests"][0]
        assert request.url.path == "/botabc/sendMessage"
        assert json.loads(request.content) == {"chat_id": "42", "text": "bar 3 dropped"}

    @pytest.mark.asyncio
    async def test_not_ok_response(self, bot_api):
        bot_api["handler"] = lambda request: httpx.Response(
            400, json={"ok": False, "description": "chat not found"},
        )
        assert await send_telegram("hello", chat_id="42", token="abc") is False

    @pytest.mark.asyncio
    async def test_non_json_response(self, bot_api):
        bot_api["handler"] = lambda request: httpx.Response(502, text="Bad Gateway")
        assert await send_telegram("hello", chat_id="42", token="abc") is False

    @pytest.mark.asyncio
    async def test_transport_error(self, bot_api):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        bot_api["handler"] = refuse
        assert await send_telegram("hello", chat_id="42", token="abc") is False

    @pytest.mark.asyncio
    async def test_credentials_from_environment(self, bot_api, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "envtoken")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "7")
        bot_api["handler"] = lambda request: httpx.Response(200, json={"ok": True})
        assert await send_telegram("hello") is True
        assert bot_api["requests"][0].url.path == "/botenvtoken/sendMessage"
