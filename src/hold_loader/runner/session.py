"""Loading session runner: feeds a bar stream through a HoldLoader."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from hold_loader.config import BarSpec, HoldSettings
from hold_loader.core.hold import DropReason, HoldLoader, OrientationSearchError
from hold_loader.monitoring.metrics import (
    BarRecord,
    SessionMetrics,
    export_to_csv,
    export_to_json,
)
from hold_loader.monitoring.telegram_notifier import (
    format_error,
    format_final_summary,
    format_session_start,
    send_telegram,
)

logger = logging.getLogger(__name__)


class LoadingSession:
    """
    Runs one hold through a stream of bars.

    Creates the HoldLoader, processes bars strictly one at a time, records
    every decision and optionally saves results and sends notifications.
    """

    def __init__(
        self,
        settings: HoldSettings,
        engine_logger: logging.Logger | None = None,
        strict: bool = False,
        results_dir: Path | str | None = None,
        send_telegram_updates: bool = False,
    ):
        """
        Initialize the session.

        Args:
            settings: Validated hold volume and window
            engine_logger: Logger for the per-bar decision trace (None = quiet)
            strict: Abort on internal search faults
            results_dir: Directory to save JSON/CSV results (None = don't save)
            send_telegram_updates: Whether to send Telegram notifications
        """
        self.settings = settings
        self.loader = HoldLoader(
            settings.hold_volume,
            settings.window_width,
            settings.window_height,
            logger=engine_logger,
            strict=strict,
        )
        self.results_dir = Path(results_dir) if results_dir is not None else None
        if self.results_dir is not None:
            self.results_dir.mkdir(parents=True, exist_ok=True)
        self.send_telegram_updates = send_telegram_updates

    async def run(self, bars: Iterable[BarSpec]) -> SessionMetrics:
        """
        Process every bar and return the session metrics.

        Args:
            bars: Validated bars in arrival order

        Returns:
            SessionMetrics with one record per bar

        Raises:
            OrientationSearchError: In strict mode, on the first internal
                fault.  Metrics gathered so far are saved first.
        """
        bars = list(bars)
        session_id = f"hold_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        metrics = SessionMetrics(
            session_id=session_id,
            hold_volume=self.settings.hold_volume,
            window_width=self.settings.window_width,
            window_height=self.settings.window_height,
        )

        logger.info("Session %s: %d bars", session_id, len(bars))
        if self.send_telegram_updates:
            await send_telegram(format_session_start(
                session_id=session_id,
                hold_volume=self.settings.hold_volume,
                window=(self.settings.window_width, self.settings.window_height),
                bar_count=len(bars),
            ))

        try:
            for index, bar in enumerate(bars, start=1):
                result = self.loader.process(bar.width, bar.length, bar.height)
                metrics.add_bar(
                    BarRecord.from_result(index, result),
                    remaining_volume=self.loader.remaining_volume,
                )
                if result.reason is DropReason.SEARCH_FAILED:
                    await self._report_fault(metrics, index, bar)
        except OrientationSearchError as exc:
            # strict mode: the engine has already counted the bar as dropped
            index = len(metrics.bar_records) + 1
            metrics.add_bar(
                BarRecord.from_result(index, exc.result),
                remaining_volume=self.loader.remaining_volume,
            )
            await self._report_fault(metrics, index, bars[index - 1], aborted=True)
            metrics.mark_complete()
            self._save_results(metrics, suffix="_aborted")
            raise

        metrics.mark_complete()
        self._save_results(metrics, suffix="_final")

        if self.send_telegram_updates:
            await send_telegram(format_final_summary(
                hold_volume=metrics.hold_volume,
                loaded_volume=metrics.total_loaded_volume,
                dropped_volume=metrics.total_dropped_volume,
                remaining_volume=metrics.remaining_volume,
                loaded_bars=metrics.loaded_bars,
                dropped_bars=metrics.dropped_bars,
                errors=metrics.errors_count,
            ))

        return metrics

    def run_sync(self, bars: Iterable[BarSpec]) -> SessionMetrics:
        """Blocking wrapper around ``run``."""
        return asyncio.run(self.run(bars))

    async def _report_fault(
        self,
        metrics: SessionMetrics,
        index: int,
        bar: BarSpec,
        aborted: bool = False,
    ) -> None:
        metrics.record_error()
        logger.error("Bar %d %s dropped after a failed orientation search", index, bar.dims)
        if self.send_telegram_updates:
            message = "Bar passed the window check but no orientation was found"
            if aborted:
                message += "; session aborted"
            await send_telegram(format_error(
                DropReason.SEARCH_FAILED.value,
                message,
                {"bar": index, "dims": bar.dims},
            ))

    def _save_results(self, metrics: SessionMetrics, suffix: str = "") -> None:
        """
        Save metrics to JSON and CSV files.

        Args:
            metrics: SessionMetrics to save
            suffix: Filename suffix (e.g., "_final")
        """
        if self.results_dir is None:
            return

        base_filename = f"{metrics.session_id}{suffix}"
        json_path = self.results_dir / f"{base_filename}.json"
        csv_path = self.results_dir / f"{base_filename}_bars.csv"

        export_to_json(metrics, json_path, include_bars=True)
        export_to_csv(metrics, csv_path)

        logger.info("Saved results to %s and %s", json_path, csv_path)
