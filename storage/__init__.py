from .redis_client import RedisClient
from .time_series import SeriesReader, ResultWriter

__all__ = ["RedisClient", "SeriesReader", "ResultWriter"]
