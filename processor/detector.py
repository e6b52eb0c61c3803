"""Sigma threshold detector with spike and breakout escalation."""

from dataclasses import dataclass, field
from typing import Literal, Sequence

import structlog

from processor.breakout import BreakoutTracker
from processor.schemas import BREAKOUT, SPIKE, DetectorConfig, Point, ResultRow
from processor.window import SampleWindow

AnnotationMode = Literal["append", "supersede"]


@dataclass
class DetectorState:
    """Per-series mutable state, owned by a single pass over the series."""

    window: SampleWindow
    spike_tracker: BreakoutTracker
    alerting: bool = False
    threshold: float = 0.0

    @classmethod
    def create(cls, config: DetectorConfig) -> "DetectorState":
        return cls(
            window=SampleWindow(config.window_len),
            spike_tracker=BreakoutTracker(
                config.breakout_tracker_len, config.breakout_threshold
            ),
        )


@dataclass
class DetectionSummary:
    points: int = 0
    rows: int = 0
    spikes: int = 0
    breakouts: int = 0
    timestamps: dict[str, list[float]] = field(
        default_factory=lambda: {SPIKE: [], BREAKOUT: []}
    )


class SigmaDetector:
    """
    Walks one series in order and decides, for each point, whether the
    *next* point breaches the current threshold.

    The threshold is the current value plus `sigmas` sample stddevs over the
    trailing window. While alerting it stays frozen so an ongoing anomaly
    cannot slowly become the new normal. A spike is noted on the row of the
    point whose baseline was breached, not on the breaching point. When more
    than `breakout_threshold` of the last `breakout_tracker_len` decisions
    were spikes, a breakout is noted and the detector returns to normal.
    """

    def __init__(
        self,
        config: DetectorConfig,
        column: str = "value",
        annotation_mode: AnnotationMode = "append",
        log: structlog.BoundLogger | None = None,
    ):
        self.config = config
        self.upper_col = f"{column}_upper"
        self.annotate_col = f"{column}_annotate"
        self.annotation_mode = annotation_mode
        self.log = log or structlog.get_logger(component="detector")
        self.summary = DetectionSummary()

    def step(
        self, state: DetectorState, k: int, point: Point, next_point: Point
    ) -> ResultRow | None:
        """Advance the state by one point. Returns None during warm-up."""
        state.window.record(k, point.value)

        if k < self.config.window_len:
            self.log.debug("still_learning", index=k, sequence=point.sequence)
            return None

        std_dev = state.window.sample_std_dev()
        if not state.alerting:
            state.threshold = point.value + std_dev * self.config.sigmas

        row = ResultRow(timestamp=point.timestamp)
        row.add(self.upper_col, state.threshold)

        self.log.debug(
            "point_evaluated",
            time=point.timestamp,
            sequence=point.sequence,
            value=point.value,
            next_value=next_point.value,
            std_dev=std_dev,
            sigma=std_dev * self.config.sigmas,
            threshold=state.threshold,
            alerting=state.alerting,
        )

        slot = k % self.config.breakout_tracker_len

        # Strictly greater: on a flat line stddev is 0 and threshold == value.
        if next_point.value <= state.threshold:
            state.alerting = False
            state.spike_tracker.declare_spike(slot, False)
            return row

        if not state.alerting:
            row.add(self.annotate_col, SPIKE)
            self.summary.spikes += 1
            self.summary.timestamps[SPIKE].append(point.timestamp)
            self.log.info("spike_detected", time=point.timestamp, sequence=point.sequence)

        state.alerting = True
        state.spike_tracker.declare_spike(slot, True)

        if state.spike_tracker.is_breakout():
            state.alerting = False
            self._annotate_breakout(row)
            self.summary.breakouts += 1
            self.summary.timestamps[BREAKOUT].append(point.timestamp)
            self.log.info(
                "breakout_detected",
                time=point.timestamp,
                sequence=point.sequence,
                spikes=state.spike_tracker.spike_count(),
            )

        return row

    def _annotate_breakout(self, row: ResultRow):
        if self.annotation_mode == "supersede":
            row.cols = [
                c for c in row.cols
                if not (c.name == self.annotate_col and c.value == SPIKE)
            ]
        row.add(self.annotate_col, BREAKOUT)

    def process(self, points: Sequence[Point]) -> list[ResultRow]:
        """Run a fresh pass over the series and return its rows in input order."""
        state = DetectorState.create(self.config)
        self.summary = DetectionSummary(points=len(points))
        results: list[ResultRow] = []

        # The last point has no successor to test, so it is never evaluated.
        for k in range(len(points) - 1):
            row = self.step(state, k, points[k], points[k + 1])
            if row is not None:
                results.append(row)

        self.summary.rows = len(results)
        return results
