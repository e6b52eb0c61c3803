"""Centralized configuration using pydantic-settings. All values are env-configurable."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from processor.schemas import DetectorConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DETECTOR_")

    # Redis
    redis_url: str = "redis://redis:6379/0"
    redis_pool_size: int = 5

    # Source series
    source_series: str = "localhost_load_1min_5.rrd"
    source_column: str = "load_1min"
    days_ago: int = 7

    # Results
    target_series: str = "annotate"
    save_thresholds: bool = True
    annotation_mode: Literal["append", "supersede"] = "append"
    result_retention_ms: int = 0  # 0 = keep everything

    # Detection
    window_len: int = 60
    breakout_tracker_len: int = 6
    breakout_threshold: int = 4
    sigmas: float = 3.0

    # Monitoring
    log_level: str = "INFO"

    def detector_config(self) -> DetectorConfig:
        return DetectorConfig(
            window_len=self.window_len,
            breakout_tracker_len=self.breakout_tracker_len,
            breakout_threshold=self.breakout_threshold,
            sigmas=self.sigmas,
        )
