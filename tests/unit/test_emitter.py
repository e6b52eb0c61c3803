"""Tests for the result emitter."""

from processor.emitter import ResultEmitter
from processor.schemas import ResultRow


class ListSink:
    def __init__(self):
        self.rows = []
        self.flushes = 0

    def write(self, row):
        self.rows.append(row)

    def flush(self):
        self.flushes += 1


def _row(ts, annotate=None):
    row = ResultRow(timestamp=ts)
    row.add("v_upper", 10.0)
    if annotate:
        row.add("v_annotate", annotate)
    return row


class TestResultEmitter:
    def test_forwards_in_order_and_flushes_once(self):
        sink = ListSink()
        rows = [_row(3.0), _row(1.0, "spike"), _row(2.0)]
        assert ResultEmitter(sink).emit(rows) == 3
        assert [r.timestamp for r in sink.rows] == [3.0, 1.0, 2.0]
        assert sink.flushes == 1

    def test_without_thresholds_only_annotations_are_written(self):
        sink = ListSink()
        rows = [_row(1.0), _row(2.0, "spike"), _row(3.0)]
        assert ResultEmitter(sink, save_thresholds=False).emit(rows) == 1
        assert sink.rows[0].to_payload() == {"time": 2.0, "v_annotate": "spike"}

    def test_empty_input_still_flushes(self):
        sink = ListSink()
        assert ResultEmitter(sink).emit([]) == 0
        assert sink.flushes == 1
