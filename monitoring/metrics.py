"""
Lightweight in-process metrics registry for retrieval monitoring.

Holds labelled counters and histograms behind an asyncio lock.
Snapshots are JSON-serializable for export via the diagnostic API.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple

MetricKey = Tuple[str, Tuple[Tuple[str, str], ...]]


@dataclass
class Histogram:
    count: int = 0
    total: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None

    def add(self, observation: float) -> None:
        self.count += 1
        self.total += observation
        self.min = observation if self.min is None else min(self.min, observation)
        self.max = observation if self.max is None else max(self.max, observation)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "sum": self.total,
            "min": self.min,
            "max": self.max,
            "avg": self.total / self.count if self.count else 0.0,
        }


class MetricsRegistry:
    _instance = None

    def __init__(self):
        self._counters: Dict[MetricKey, float] = {}
        self._histograms: Dict[MetricKey, Histogram] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def instance(cls) -> "MetricsRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @staticmethod
    def _key(name: str, labels: Optional[Dict[str, Any]]) -> MetricKey:
        items = tuple(sorted((str(k), str(v)) for k, v in (labels or {}).items()))
        return name, items

    async def inc(self, name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
        key = self._key(name, labels)
        async with self._lock:
            self._counters[key] = self._counters.get(key, 0.0) + value

    async def observe(self, name: str, observation: float, labels: Optional[Dict[str, Any]] = None) -> None:
        key = self._key(name, labels)
        async with self._lock:
            self._histograms.setdefault(key, Histogram()).add(observation)

    async def counter_value(self, name: str, labels: Optional[Dict[str, Any]] = None) -> float:
        async with self._lock:
            return self._counters.get(self._key(name, labels), 0.0)

    async def export(self) -> Dict[str, Any]:
        async with self._lock:
            counters = [
                {"name": name, "labels": dict(labels), "value": value}
                for (name, labels), value in self._counters.items()
            ]
            histograms = [
                {"name": name, "labels": dict(labels), **hist.as_dict()}
                for (name, labels), hist in self._histograms.items()
            ]
            return {"counters": counters, "histograms": histograms}

    async def reset(self) -> None:
        async with self._lock:
            self._counters.clear()
            self._histograms.clear()


async def inc(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    await MetricsRegistry.instance().inc(name, value, labels)


async def observe(name: str, observation: float, labels: Optional[Dict[str, Any]] = None) -> None:
    await MetricsRegistry.instance().observe(name, observation, labels)


async def counter_value(name: str, labels: Optional[Dict[str, Any]] = None) -> float:
    return await MetricsRegistry.instance().counter_value(name, labels)


async def get_metrics() -> Dict[str, Any]:
    return await MetricsRegistry.instance().export()


async def reset_metrics() -> None:
    await MetricsRegistry.instance().reset()
