"""Redis metric recorders.

Two implementations of MetricRecorder:

- TimeSeriesMetricRecorder: RedisTimeSeries (TS.ADD / TS.RANGE)
- ListMetricRecorder: bounded JSON list per series with its own TTL, for
  servers without the TimeSeries module

``create_metric_recorder`` picks one at startup by inspecting the loaded
modules, so callers never branch on capability per call.
"""

import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError, ResponseError

from travel_cache.config import settings
from travel_cache.entities import MetricPoint
from travel_cache.exceptions import MetricBackendUnavailable

logger = logging.getLogger(__name__)


def _clean_labels(labels: dict[str, str] | None) -> dict[str, str]:
    # TS.ADD LABELS takes space-separated tokens
    return {str(k): str(v).replace(" ", "_") for k, v in (labels or {}).items() if v != ""}


class TimeSeriesMetricRecorder:
    """MetricRecorder backed by RedisTimeSeries.

    Samples that land on the same millisecond are summed. Labels are attached
    to the series when it is first created; TS.RANGE does not return them,
    so points read back carry empty labels. Samples older than ``retention``
    seconds are dropped by the server.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        retention: int | None = None,
        key_prefix: str = "metrics:",
    ) -> None:
        self._client = redis_client
        self._retention_ms = (retention or settings.metrics_retention) * 1000
        self._key_prefix = key_prefix

    def _key(self, series: str) -> str:
        return f"{self._key_prefix}{series}"

    async def record(
        self,
        series: str,
        timestamp: int,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        key = self._key(series)
        ts = self._client.ts()
        try:
            await ts.add(
                key,
                timestamp,
                value,
                retention_msecs=self._retention_ms,
                labels=_clean_labels(labels),
                duplicate_policy="sum",
            )
        except ResponseError as e:
            if "label" not in str(e).lower():
                raise MetricBackendUnavailable(f"TS.ADD {key} failed: {e}") from e
            logger.debug("Labels rejected for %s, retrying without: %s", key, e)
            try:
                await ts.add(
                    key,
                    timestamp,
                    value,
                    retention_msecs=self._retention_ms,
                    duplicate_policy="sum",
                )
            except RedisError as retry_error:
                raise MetricBackendUnavailable(f"TS.ADD {key} failed: {retry_error}") from retry_error
        except RedisError as e:
            raise MetricBackendUnavailable(f"TS.ADD {key} failed: {e}") from e

    async def query(self, series: str, from_ts: int, to_ts: int) -> list[MetricPoint]:
        key = self._key(series)
        try:
            samples = await self._client.ts().range(key, from_ts, to_ts)
        except ResponseError as e:
            if "does not exist" in str(e).lower():
                return []
            raise MetricBackendUnavailable(f"TS.RANGE {key} failed: {e}") from e
        except RedisError as e:
            raise MetricBackendUnavailable(f"TS.RANGE {key} failed: {e}") from e

        return [MetricPoint(timestamp=int(ts), value=float(value)) for ts, value in samples]


class ListMetricRecorder:
    """MetricRecorder fallback: a capped, expiring JSON list per series.

    Keeps the newest ``max_entries`` samples. The whole list expires
    ``ttl`` seconds after the last write.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        max_entries: int | None = None,
        ttl: int | None = None,
        key_prefix: str = "fallback_metrics:",
    ) -> None:
        self._client = redis_client
        self._max_entries = max_entries or settings.metrics_fallback_max_entries
        self._ttl = ttl or settings.metrics_fallback_ttl
        self._key_prefix = key_prefix

    def _key(self, series: str) -> str:
        return f"{self._key_prefix}{series}"

    async def record(
        self,
        series: str,
        timestamp: int,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        key = self._key(series)
        data = json.dumps({"timestamp": timestamp, "value": value, "labels": labels or {}})

        pipe = self._client.pipeline()
        pipe.lpush(key, data)
        pipe.ltrim(key, 0, self._max_entries - 1)
        pipe.expire(key, self._ttl)
        try:
            await pipe.execute()
        except RedisError as e:
            raise MetricBackendUnavailable(f"Fallback metric write to {key} failed: {e}") from e

    async def query(self, series: str, from_ts: int, to_ts: int) -> list[MetricPoint]:
        key = self._key(series)
        try:
            raw_items = await self._client.lrange(key, 0, -1)
        except RedisError as e:
            raise MetricBackendUnavailable(f"Fallback metric read from {key} failed: {e}") from e

        points = []
        for item in raw_items:
            try:
                parsed = json.loads(item)
                point = MetricPoint(
                    timestamp=int(parsed["timestamp"]),
                    value=float(parsed["value"]),
                    labels=parsed.get("labels") or {},
                )
            except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                logger.warning("Skipping unparseable fallback metric in %s", key)
                continue
            if from_ts <= point.timestamp <= to_ts:
                points.append(point)

        # LPUSH stores newest first
        points.reverse()
        return points


def _module_names(modules: list) -> set[str]:
    names = set()
    for module in modules or []:
        name = module.get("name") or module.get(b"name") or ""
        if isinstance(name, bytes):
            name = name.decode()
        names.add(name.lower())
    return names


async def create_metric_recorder(
    redis_client: redis.Redis,
) -> TimeSeriesMetricRecorder | ListMetricRecorder:
    """Choose the metric recorder for this Redis server.

    Returns:
        TimeSeriesMetricRecorder when the timeseries module is loaded,
        ListMetricRecorder otherwise (including when the check itself fails)
    """
    try:
        modules = await redis_client.module_list()
    except RedisError as e:
        logger.warning("Could not list Redis modules (%s), using fallback metrics", e)
        return ListMetricRecorder(redis_client)

    if "timeseries" in _module_names(modules):
        logger.info("RedisTimeSeries available, recording metrics natively")
        return TimeSeriesMetricRecorder(redis_client)

    logger.warning("RedisTimeSeries module not loaded, using capped list fallback for metrics")
    return ListMetricRecorder(redis_client)
