"""Detection run: load one series, detect spikes and breakouts, save the annotated rows."""

import argparse
import sys

from pydantic import ValidationError

from config import Settings, configure_logging
from processor.detector import DetectionSummary, SigmaDetector
from processor.emitter import ResultEmitter
from processor.errors import DetectorError
from storage.redis_client import RedisClient
from storage.time_series import ResultWriter, SeriesReader


class DetectionRunner:
    """
    Wires together: SeriesReader → SigmaDetector → ResultEmitter → ResultWriter.

    Nothing is written unless the whole series loads and every point has
    been evaluated.
    """

    def __init__(self, settings: Settings, client: RedisClient):
        self.settings = settings
        self.log = configure_logging(
            "detector", settings.log_level, series=settings.source_series
        )
        self._reader = SeriesReader(client)
        self._writer = ResultWriter(
            client,
            settings.target_series,
            retention_ms=settings.result_retention_ms,
        )
        self._detector = SigmaDetector(
            settings.detector_config(),
            column=settings.source_column,
            annotation_mode=settings.annotation_mode,
            log=self.log,
        )

    def run(self) -> DetectionSummary:
        series = self._reader.load(
            self.settings.source_series,
            self.settings.source_column,
            days_ago=self.settings.days_ago,
        )
        self.log.info(
            "series_loaded",
            name=series.name,
            column=series.column,
            points=len(series.points),
        )

        rows = self._detector.process(series.points)

        emitter = ResultEmitter(
            self._writer, save_thresholds=self.settings.save_thresholds, log=self.log
        )
        written = emitter.emit(rows)

        summary = self._detector.summary
        self.log.info(
            "results_saved",
            target=self._writer.key,
            rows=written,
            spikes=summary.spikes,
            breakouts=summary.breakouts,
        )
        return summary


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Flag spikes and breakouts in a time series stored in Redis"
    )
    parser.add_argument("--redis-url", help="Redis connection URL")
    parser.add_argument("--source", dest="source_series", help="Source series name (suffix match)")
    parser.add_argument("--column", dest="source_column", help="Value column in the source series")
    parser.add_argument("--days-ago", type=int, help="Lookback in days, 0 for the whole series")
    parser.add_argument("--target", dest="target_series", help="Series to write results into")
    parser.add_argument("--window-len", type=int, help="Points used for the baseline stddev")
    parser.add_argument("--breakout-tracker-len", type=int, help="Trailing decisions tracked for breakouts")
    parser.add_argument("--breakout-threshold", type=int, help="Spikes that must be exceeded for a breakout")
    parser.add_argument("--sigmas", type=float, help="Stddev multiple added to the baseline")
    parser.add_argument(
        "--annotation-mode",
        choices=["append", "supersede"],
        help="Keep both spike and breakout on one row, or let breakout replace spike",
    )
    parser.add_argument(
        "--no-thresholds",
        dest="save_thresholds",
        action="store_false",
        default=None,
        help="Only write annotations, not the threshold column",
    )
    parser.add_argument("--log-level", help="Logging level, DEBUG for per-point output")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with any CLI flags layered on top."""
    overrides = {k: v for k, v in vars(args).items() if v is not None}
    return Settings(**overrides)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    log = configure_logging("detector")
    try:
        settings = build_settings(args)
        settings.detector_config()
        client = RedisClient.from_settings(settings)
    except (ValidationError, ValueError) as e:
        log.error("invalid_configuration", error=str(e))
        return 2

    try:
        DetectionRunner(settings, client).run()
    except DetectorError as e:
        log.error("run_failed", error_type=type(e).__name__, error=str(e))
        return 1
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
