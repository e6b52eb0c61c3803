"""Detector data shapes: input points, tuning config, and output rows."""

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from processor.errors import MalformedPointError

SPIKE = "spike"
BREAKOUT = "breakout"


class Point(BaseModel):
    timestamp: float = Field(description="Unix epoch in milliseconds")
    sequence: Any = Field(description="Opaque identifier, carried through for diagnostics")
    # Strict: booleans and numeric strings are malformed, as are NaN and Infinity.
    value: float = Field(strict=True, allow_inf_nan=False)


class DetectorConfig(BaseModel):
    # Number of points used for the baseline stddev. This is the "learning"
    # span: no detection happens until it has been filled once.
    window_len: int = Field(default=60, ge=2)
    # Number of trailing spike/no-spike decisions kept for breakout tracking.
    breakout_tracker_len: int = Field(default=6, ge=1)
    # A breakout needs strictly more spikes than this within the tracker.
    breakout_threshold: int = Field(default=4, ge=0)
    sigmas: float = Field(default=3.0, ge=0)


def parse_point(raw: dict[str, Any]) -> Point:
    """Validate a raw point, raising MalformedPointError if its value is not a float."""
    try:
        return Point.model_validate(raw)
    except ValidationError as e:
        raise MalformedPointError(
            raw.get("sequence"),
            raw.get("timestamp"),
            raw.get("value"),
            reason=_describe(e),
        ) from e


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    field_name = ".".join(str(part) for part in first["loc"])
    return f"{field_name}: {first['msg']}"


@dataclass
class ResultCol:
    name: str
    value: float | str


@dataclass
class ResultRow:
    """
    One output row. Columns are ordered and may repeat a name: a row can
    carry both a spike and a breakout annotation under the same column.
    """

    timestamp: float
    cols: list[ResultCol] = field(default_factory=list)

    def add(self, name: str, value: float | str):
        self.cols.append(ResultCol(name, value))

    def values(self, name: str) -> list[float | str]:
        return [c.value for c in self.cols if c.name == name]

    def to_payload(self) -> dict[str, Any]:
        """Flatten to a dict; a repeated column name becomes a list in insertion order."""
        payload: dict[str, Any] = {"time": self.timestamp}
        for col in self.cols:
            if col.name not in payload:
                payload[col.name] = col.value
            elif isinstance(payload[col.name], list):
                payload[col.name].append(col.value)
            else:
                payload[col.name] = [payload[col.name], col.value]
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), sort_keys=True)
