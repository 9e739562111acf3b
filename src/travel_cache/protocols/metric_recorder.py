"""Metric recorder protocol.

Implementations are chosen once at startup: a native time-series backend
when available, a bounded log otherwise.
"""

from typing import Protocol, runtime_checkable

from travel_cache.entities import MetricPoint


@runtime_checkable
class MetricRecorder(Protocol):
    """Protocol for recording and reading back metric samples."""

    async def record(
        self,
        series: str,
        timestamp: int,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record one sample.

        Args:
            series: Series name (e.g. "cache_hits")
            timestamp: Milliseconds since epoch
            value: Sample value
            labels: Optional string labels

        Raises:
            MetricBackendUnavailable: If the sample could not be written
        """
        ...

    async def query(self, series: str, from_ts: int, to_ts: int) -> list[MetricPoint]:
        """Return the samples of a series within [from_ts, to_ts] (milliseconds).

        An unknown series yields an empty list.

        Raises:
            MetricBackendUnavailable: If the backend could not be read
        """
        ...
