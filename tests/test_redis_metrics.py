"""Tests for the RedisTimeSeries and list-fallback metric recorders."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from travel_cache.config import settings
from travel_cache.entities import MetricPoint
from travel_cache.exceptions import MetricBackendUnavailable
from travel_cache.repositories import (
    ListMetricRecorder,
    TimeSeriesMetricRecorder,
    create_metric_recorder,
)

pytestmark = pytest.mark.anyio


class TestTimeSeriesMetricRecorder:
    @pytest.fixture
    def ts(self):
        ts = MagicMock()
        ts.add = AsyncMock()
        ts.range = AsyncMock(return_value=[])
        return ts

    @pytest.fixture
    def recorder(self, ts):
        client = MagicMock()
        client.ts.return_value = ts
        return TimeSeriesMetricRecorder(client, retention=7200)

    async def test_record_sums_duplicates_and_cleans_labels(self, recorder, ts):
        await recorder.record("cache_hits", 1000, 1, {"location": "Paris, France", "budget": ""})

        ts.add.assert_awaited_once_with(
            "metrics:cache_hits",
            1000,
            1,
            retention_msecs=7_200_000,
            labels={"location": "Paris,_France"},
            duplicate_policy="sum",
        )

    async def test_rejected_labels_are_dropped(self, recorder, ts):
        ts.add.side_effect = [ResponseError("ERR TSDB: invalid labels"), None]

        await recorder.record("cache_misses", 1000, 1, {"location": "Paris"})

        assert ts.add.await_count == 2
        assert "labels" not in ts.add.await_args.kwargs
        assert ts.add.await_args.kwargs["retention_msecs"] == 7_200_000

    async def test_default_retention_comes_from_settings(self, ts):
        client = MagicMock()
        client.ts.return_value = ts

        await TimeSeriesMetricRecorder(client).record("cache_hits", 1000, 1)

        assert ts.add.await_args.kwargs["retention_msecs"] == settings.metrics_retention * 1000

    async def test_record_failure_raises(self, recorder, ts):
        ts.add.side_effect = RedisConnectionError("refused")

        with pytest.raises(MetricBackendUnavailable):
            await recorder.record("cache_hits", 1000, 1)

    async def test_query_converts_samples(self, recorder, ts):
        ts.range.return_value = [[1000, "1"], [2000, "2.5"]]

        points = await recorder.query("cache_hits", 0, 5000)

        ts.range.assert_awaited_once_with("metrics:cache_hits", 0, 5000)
        assert points == [MetricPoint(1000, 1.0), MetricPoint(2000, 2.5)]

    async def test_query_missing_series_is_empty(self, recorder, ts):
        ts.range.side_effect = ResponseError("ERR TSDB: the key does not exist")

        assert await recorder.query("cache_stores", 0, 5000) == []

    async def test_query_backend_down_raises(self, recorder, ts):
        ts.range.side_effect = RedisConnectionError("refused")

        with pytest.raises(MetricBackendUnavailable):
            await recorder.query("cache_hits", 0, 5000)


class TestListMetricRecorder:
    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.pipeline.return_value.execute = AsyncMock(return_value=[1, True, True])
        client.lrange = AsyncMock(return_value=[])
        return client

    async def test_record_pushes_trims_and_expires(self, client):
        recorder = ListMetricRecorder(client, max_entries=1000, ttl=3600)

        await recorder.record("cache_hits", 1000, 1, {"location": "Paris"})

        pipe = client.pipeline.return_value
        pushed = json.loads(pipe.lpush.call_args.args[1])
        assert pipe.lpush.call_args.args[0] == "fallback_metrics:cache_hits"
        assert pushed == {"timestamp": 1000, "value": 1, "labels": {"location": "Paris"}}
        pipe.ltrim.assert_called_once_with("fallback_metrics:cache_hits", 0, 999)
        pipe.expire.assert_called_once_with("fallback_metrics:cache_hits", 3600)
        pipe.execute.assert_awaited_once()

    async def test_record_failure_raises(self, client):
        client.pipeline.return_value.execute.side_effect = RedisConnectionError("refused")
        recorder = ListMetricRecorder(client)

        with pytest.raises(MetricBackendUnavailable):
            await recorder.record("cache_hits", 1000, 1)

    async def test_query_filters_window_oldest_first(self, client):
        client.lrange.return_value = [
            json.dumps({"timestamp": 9000, "value": 1, "labels": {}}),
            json.dumps({"timestamp": 3000, "value": 1, "labels": {"location": "Rome"}}),
            "not json",
            json.dumps({"timestamp": 2000, "value": 1, "labels": {}}),
            json.dumps({"timestamp": 500, "value": 1, "labels": {}}),
        ]
        recorder = ListMetricRecorder(client)

        points = await recorder.query("cache_hits", 1000, 5000)

        assert [p.timestamp for p in points] == [2000, 3000]
        assert points[1].labels == {"location": "Rome"}


class TestCreateMetricRecorder:
    async def test_uses_timeseries_when_loaded(self):
        client = MagicMock()
        client.module_list = AsyncMock(
            return_value=[{"name": "search", "ver": 20811}, {"name": "timeseries", "ver": 11011}]
        )

        assert isinstance(await create_metric_recorder(client), TimeSeriesMetricRecorder)

    async def test_falls_back_without_timeseries(self):
        client = MagicMock()
        client.module_list = AsyncMock(return_value=[{"name": "ReJSON", "ver": 20609}])

        assert isinstance(await create_metric_recorder(client), ListMetricRecorder)

    async def test_falls_back_when_module_list_fails(self):
        client = MagicMock()
        client.module_list = AsyncMock(side_effect=ResponseError("unknown command 'MODULE'"))

        assert isinstance(await create_metric_recorder(client), ListMetricRecorder)
