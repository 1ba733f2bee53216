"""Metrics tracking and export for hold loading sessions.

Provides dataclasses for tracking per-bar decisions and session totals, and
utilities for exporting results to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from hold_loader.core.hold import LoadResult


CSV_FIELDS = [
    "index", "width", "length", "height", "volume", "decision", "reason",
    "rotations", "final_width", "final_height", "remaining_after", "processed_at",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BarRecord:
    """Decision taken for a single bar.

    Attributes:
        index: Position of the bar in the stream (1-based).
        width, length, height: Extents as received.
        volume: Bar volume.
        decision: "loaded" or "dropped".
        reason: Drop reason ("no_fit", "volume_cap", "search_failed"), None if loaded.
        rotations: Rotation numbers applied before loading (1, 2 or 3).
        final_width, final_height: Face presented to the window, None if dropped.
        remaining_after: Hold volume left after this bar.
        processed_at: Timestamp of the decision.
    """

    index: int
    width: float
    length: float
    height: float
    volume: float
    decision: str
    reason: str | None = None
    rotations: list[int] = field(default_factory=list)
    final_width: float | None = None
    final_height: float | None = None
    remaining_after: float = 0.0
    processed_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_result(cls, index: int, result: LoadResult) -> BarRecord:
        """Build a record from an engine ``LoadResult``.

        Example:
            >>> from hold_loader.core.hold import HoldLoader
            >>> rec = BarRecord.from_result(1, HoldLoader(1000, 10, 10).process(5, 5, 5))
            >>> rec.decision
            'loaded'
        """
        return cls(
            index=index,
            width=result.width,
            length=result.length,
            height=result.height,
            volume=result.volume,
            decision=result.decision.value,
            reason=result.reason.value if result.reason is not None else None,
            rotations=[r.value for r in result.path.rotations] if result.path else [],
            final_width=result.final_width,
            final_height=result.final_height,
            remaining_after=result.remaining_after,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamp."""
        d = asdict(self)
        d["processed_at"] = self.processed_at.isoformat()
        return d


@dataclass
class SessionMetrics:
    """Aggregate metrics for one loading session.

    Attributes:
        session_id: Unique identifier for the session.
        hold_volume: Total hold capacity.
        window_width, window_height: Hold window.
        total_bars: Bars processed.
        loaded_bars, dropped_bars: Decision counts.
        total_loaded_volume, total_dropped_volume: Volume totals.
        remaining_volume: Hold volume still free.
        errors_count: Internal faults and other errors encountered.
        started_at: Session start timestamp.
        completed_at: Session completion timestamp (None if running).
        runtime_seconds: Total runtime in seconds.
        bar_records: Per-bar decisions.
    """

    session_id: str
    hold_volume: float
    window_width: float
    window_height: float
    total_bars: int = 0
    loaded_bars: int = 0
    dropped_bars: int = 0
    total_loaded_volume: float = 0.0
    total_dropped_volume: float = 0.0
    remaining_volume: float = 0.0
    errors_count: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    runtime_seconds: float = 0.0
    bar_records: list[BarRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.total_bars == 0:
            self.remaining_volume = self.hold_volume

    @property
    def fill_pct(self) -> float:
        """Share of the hold volume that has been loaded (0-100)."""
        if not self.hold_volume:
            return 0.0
        return self.total_loaded_volume / self.hold_volume * 100

    def add_bar(self, record: BarRecord, remaining_volume: float) -> None:
        """Add a bar's decision to the session.

        Args:
            record: BarRecord to add.
            remaining_volume: Engine's remaining volume after the bar.

        Example:
            >>> sm = SessionMetrics("s1", 1000, 10, 10)
            >>> sm.add_bar(BarRecord(1, 5, 5, 5, 125, "loaded"), 875)
            >>> sm.loaded_bars, sm.remaining_volume
            (1, 875)
        """
        self.bar_records.append(record)
        self.total_bars += 1
        if record.decision == "loaded":
            self.loaded_bars += 1
            self.total_loaded_volume += record.volume
        else:
            self.dropped_bars += 1
            self.total_dropped_volume += record.volume
        self.remaining_volume = remaining_volume

    def record_error(self) -> None:
        """Increment error counter."""
        self.errors_count += 1

    def mark_complete(self) -> None:
        """Mark session as complete and calculate final runtime."""
        self.completed_at = _utcnow()
        self.runtime_seconds = (self.completed_at - self.started_at).total_seconds()

    def drop_reasons(self) -> dict[str, int]:
        """Count dropped bars per reason.

        Example:
            >>> sm = SessionMetrics("s1", 1000, 10, 10)
            >>> sm.add_bar(BarRecord(1, 11, 11, 11, 1331, "dropped", "no_fit"), 1000)
            >>> sm.drop_reasons()
            {'no_fit': 1}
        """
        return dict(Counter(r.reason for r in self.bar_records if r.reason is not None))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamps."""
        d = asdict(self)
        d["started_at"] = self.started_at.isoformat()
        d["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        d["bar_records"] = [r.to_dict() for r in self.bar_records]
        d["fill_pct"] = self.fill_pct
        d["drop_reasons"] = self.drop_reasons()
        return d

    def to_summary_dict(self) -> dict[str, Any]:
        """Convert to summary dictionary without per-bar details."""
        d = self.to_dict()
        del d["bar_records"]
        return d


def export_to_json(metrics: SessionMetrics, output_path: Path | str, include_bars: bool = True) -> None:
    """Export session metrics to JSON file.

    Args:
        metrics: SessionMetrics instance to export.
        output_path: Path to output JSON file.
        include_bars: If True, include per-bar records. If False, summary only.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = metrics.to_dict() if include_bars else metrics.to_summary_dict()

    with output_path.open("w") as f:
        json.dump(data, f, indent=2)


def export_to_csv(metrics: SessionMetrics, output_path: Path | str) -> None:
    """Export per-bar records to CSV file (header only when there are none)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for record in metrics.bar_records:
            row = record.to_dict()
            row["rotations"] = " ".join(str(r) for r in record.rotations)
            writer.writerow(row)


def print_summary(metrics: SessionMetrics) -> str:
    """Generate the human-readable final loading report.

    Args:
        metrics: SessionMetrics instance to summarize.

    Returns:
        Formatted multi-line summary string.

    Example:
        >>> sm = SessionMetrics("s1", 1000, 10, 10)
        >>> "Total hold volume: 1000.00" in print_summary(sm)
        True
    """
    reasons = metrics.drop_reasons()
    lines = [
        "=" * 40,
        "LOADING COMPLETE",
        "=" * 40,
        f"Session: {metrics.session_id}",
        f"Window (W x H): {metrics.window_width:.2f} x {metrics.window_height:.2f}",
        f"Total hold volume: {metrics.hold_volume:.2f}",
        f"Total loaded volume: {metrics.total_loaded_volume:.2f}",
        f"Total dropped volume: {metrics.total_dropped_volume:.2f}",
        f"Remaining free volume: {metrics.remaining_volume:.2f}",
        "",
        f"Bars: {metrics.total_bars} "
        f"(loaded {metrics.loaded_bars}, dropped {metrics.dropped_bars})",
        f"Fill: {metrics.fill_pct:.2f}%",
    ]
    if reasons:
        lines.append(
            "Drop reasons: " + ", ".join(f"{k}={v}" for k, v in sorted(reasons.items()))
        )
    lines += [
        f"Errors: {metrics.errors_count}",
        f"Runtime: {metrics.runtime_seconds:.3f} seconds",
        "=" * 40,
    ]
    return "\n".join(lines)
