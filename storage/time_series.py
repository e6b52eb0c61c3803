"""Series storage using Redis sorted sets (score = timestamp in ms)."""

import json
import re
import time
from dataclasses import dataclass

import redis

from processor.errors import AmbiguousSeriesError, MalformedPointError, UpstreamError
from processor.schemas import Point, ResultRow, parse_point
from storage.redis_client import CircuitOpenError, RedisClient

DAY_MS = 86_400_000

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def series_key(name: str) -> str:
    return f"ts:{name}"


@dataclass
class LoadedSeries:
    name: str
    column: str
    points: list[Point]


class SeriesReader:
    """
    Loads exactly one series for detection.

    The source name is matched as a key suffix, so `load.rrd` finds
    `ts:localhost_load.rrd`. Zero or several matches abort the run. Every
    point is validated before anything is returned.
    """

    def __init__(self, client: RedisClient):
        self._client = client

    def find_series(self, source: str) -> str:
        pattern = series_key("*" + _GLOB_SPECIAL.sub(r"\\\1", source))

        def _query(r):
            return sorted(r.scan_iter(match=pattern, count=100))

        keys = self._call(_query)
        if len(keys) != 1:
            raise AmbiguousSeriesError(pattern, len(keys))
        return keys[0]

    def load(
        self,
        source: str,
        column: str,
        days_ago: int = 7,
        now_ms: float | None = None,
    ) -> LoadedSeries:
        key = self.find_series(source)
        if days_ago > 0:
            now_ms = now_ms if now_ms is not None else time.time() * 1000
            # Exclusive lower bound: time > now - Nd
            start: float | str = f"({now_ms - days_ago * DAY_MS}"
        else:
            start = "-inf"

        def _query(r):
            return r.zrangebyscore(key, start, "+inf", withscores=True)

        raw = self._call(_query)
        points = [
            self._to_point(payload, score, column, position)
            for position, (payload, score) in enumerate(raw)
        ]
        return LoadedSeries(name=key.removeprefix("ts:"), column=column, points=points)

    @staticmethod
    def _to_point(payload: str, score: float, column: str, position: int) -> Point:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedPointError(position, score, payload, reason="invalid JSON") from e
        if not isinstance(data, dict):
            raise MalformedPointError(position, score, data, reason="expected an object")
        return parse_point({
            "timestamp": score,
            "sequence": data.get("sequence", position),
            "value": data.get(column),
        })

    def _call(self, func):
        try:
            return self._client.execute_with_retry(func)
        except (redis.RedisError, CircuitOpenError) as e:
            raise UpstreamError(f"failed to read series: {e}") from e


class ResultWriter:
    """
    Buffers result rows for a target series and writes them in one
    transactional pipeline on flush, so a failed write commits nothing.
    Optionally trims result entries older than the retention period,
    measured from the newest row written.
    """

    def __init__(self, client: RedisClient, target: str, retention_ms: int = 0):
        self._client = client
        self._key = series_key(target)
        self._retention_ms = retention_ms
        self._pending: list[ResultRow] = []

    @property
    def key(self) -> str:
        return self._key

    def write(self, row: ResultRow):
        self._pending.append(row)

    def flush(self):
        """Execute all pending writes in a single Redis pipeline."""
        if not self._pending:
            return

        rows = list(self._pending)

        def _op(r):
            pipe = r.pipeline(transaction=True)
            for row in rows:
                pipe.zadd(self._key, {row.to_json(): row.timestamp})
            if self._retention_ms > 0:
                newest = max(row.timestamp for row in rows)
                pipe.zremrangebyscore(self._key, "-inf", f"({newest - self._retention_ms}")
            pipe.execute()

        try:
            self._client.execute_with_retry(_op)
        except (redis.RedisError, CircuitOpenError) as e:
            raise UpstreamError(f"failed to write results to {self._key}: {e}") from e
        self._pending.clear()
