from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class DecisionLogSink(Protocol):
    def log(self, payload: Dict[str, Any]) -> None: ...


@runtime_checkable
class MetricsSink(Protocol):
    def inc(self, name: str, labels: Optional[Dict[str, str]] = None) -> None: ...


@runtime_checkable
class MetricsObserve(Protocol):
    """Optional extension of MetricsSink; the engine checks for it at call time."""

    def observe(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None: ...


@runtime_checkable
class AssertionResolver(Protocol):
    """Looks up named assertions for aggregates. Any Mapping satisfies this."""

    def get(self, name: str) -> Any: ...


__all__ = ["DecisionLogSink", "MetricsSink", "MetricsObserve", "AssertionResolver"]
