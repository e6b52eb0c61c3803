"""Tests for the detection runner and CLI entry point."""

import json
import types

import pytest

from processor.errors import MalformedPointError
from processor import main as main_module
from processor.main import DetectionRunner, build_settings, parse_args


def seed_series(fake_redis, key, values):
    fake_redis.zadd(key, {
        json.dumps({"value": v, "sequence": i}): float(i)
        for i, v in enumerate(values)
    })


class TestDetectionRunner:
    def test_run_writes_annotated_rows(self, settings, fake_redis, redis_client):
        seed_series(fake_redis, "ts:cpu", [10, 10, 10, 10, 10, 10, 100, 10, 10])
        summary = DetectionRunner(settings, redis_client).run()

        stored = [json.loads(m) for m in fake_redis.zrange("ts:cpu_annotated", 0, -1)]
        assert [s["time"] for s in stored] == [3.0, 4.0, 5.0, 6.0, 7.0]
        assert stored[2]["value_annotate"] == "spike"
        assert summary.spikes == 1
        assert summary.breakouts == 0

    def test_annotations_only(self, settings, fake_redis, redis_client):
        settings = settings.model_copy(update={"save_thresholds": False})
        seed_series(fake_redis, "ts:cpu", [10, 10, 10, 10, 10, 10, 100, 10, 10])
        DetectionRunner(settings, redis_client).run()
        stored = [json.loads(m) for m in fake_redis.zrange("ts:cpu_annotated", 0, -1)]
        assert stored == [{"time": 5.0, "value_annotate": "spike"}]

    def test_malformed_point_writes_nothing(self, settings, fake_redis, redis_client):
        seed_series(fake_redis, "ts:cpu", [10, 10, 10, 10, "bad", 10])
        with pytest.raises(MalformedPointError):
            DetectionRunner(settings, redis_client).run()
        assert not fake_redis.exists("ts:cpu_annotated")

    def test_non_finite_value_aborts_before_detection(self, settings, fake_redis, redis_client):
        fake_redis.zadd("ts:cpu", {
            **{json.dumps({"value": 10, "sequence": i}): float(i) for i in range(3)},
            '{"value": NaN, "sequence": 3}': 3.0,
            **{json.dumps({"value": 10, "sequence": i}): float(i) for i in range(4, 8)},
        })
        with pytest.raises(MalformedPointError):
            DetectionRunner(settings, redis_client).run()
        assert not fake_redis.exists("ts:cpu_annotated")


class TestCli:
    def test_flags_override_settings(self):
        settings = build_settings(parse_args([
            "--source", "load.rrd",
            "--window-len", "10",
            "--sigmas", "4",
            "--annotation-mode", "supersede",
            "--no-thresholds",
        ]))
        assert settings.source_series == "load.rrd"
        assert settings.window_len == 10
        assert settings.sigmas == 4.0
        assert settings.annotation_mode == "supersede"
        assert settings.save_thresholds is False

    def test_unset_flags_keep_defaults(self):
        settings = build_settings(parse_args([]))
        assert settings.save_thresholds is True
        assert settings.breakout_tracker_len == 6

    def test_invalid_config_exits_2(self):
        assert main_module.main(["--window-len", "1"]) == 2

    def test_malformed_redis_url_exits_2(self):
        assert main_module.main(["--redis-url", "notredis://localhost"]) == 2

    def test_detector_error_exits_1(self, monkeypatch, redis_client):
        monkeypatch.setattr(
            main_module,
            "RedisClient",
            types.SimpleNamespace(from_settings=lambda s: redis_client),
        )
        assert main_module.main(["--source", "missing", "--days-ago", "0"]) == 1
        assert redis_client.closed

    def test_successful_run_exits_0(self, monkeypatch, fake_redis, redis_client):
        seed_series(fake_redis, "ts:cpu", [1.0, 1.0, 1.0, 1.0, 2.0])
        monkeypatch.setattr(
            main_module,
            "RedisClient",
            types.SimpleNamespace(from_settings=lambda s: redis_client),
        )
        argv = ["--source", "cpu", "--column", "value", "--target", "out", "--window-len", "3", "--days-ago", "0"]
        assert main_module.main(argv) == 0
        assert len(fake_redis.zrange("ts:out", 0, -1)) == 1
