"""Hands detector rows to a result sink in input order."""

from typing import Iterable, Protocol

import structlog

from processor.schemas import ResultRow


class ResultSink(Protocol):
    def write(self, row: ResultRow): ...

    def flush(self): ...


class ResultEmitter:
    """
    Filters and forwards rows to the sink, then flushes it once.

    With save_thresholds off, the `_upper` column is dropped and rows left
    without any column (plain, un-annotated points) are not written at all.
    """

    def __init__(
        self,
        sink: ResultSink,
        save_thresholds: bool = True,
        log: structlog.BoundLogger | None = None,
    ):
        self._sink = sink
        self._save_thresholds = save_thresholds
        self.log = log or structlog.get_logger(component="emitter")

    def _prepare(self, row: ResultRow) -> ResultRow | None:
        if self._save_thresholds:
            return row
        cols = [c for c in row.cols if not c.name.endswith("_upper")]
        if not cols:
            return None
        return ResultRow(timestamp=row.timestamp, cols=cols)

    def emit(self, rows: Iterable[ResultRow]) -> int:
        """Write every row and return how many were handed to the sink."""
        written = 0
        for row in rows:
            prepared = self._prepare(row)
            if prepared is None:
                continue
            self._sink.write(prepared)
            written += 1
        self._sink.flush()
        self.log.info("results_emitted", rows=written)
        return written
