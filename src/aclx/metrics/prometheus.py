from __future__ import annotations

from typing import Any, Dict, Optional

from aclx.core.ports import MetricsSink

try:
    from prometheus_client import Counter, Histogram  # type: ignore
except Exception:  # pragma: no cover
    Counter = Histogram = None  # type: ignore


class PrometheusMetrics(MetricsSink):
    """Prometheus-based MetricsSink.

    Exposes:
      - aclx_decisions_total{decision="allow|deny"}
      - aclx_decision_seconds{decision="allow|deny"} (Histogram)

    Pass ``registry`` to keep instruments out of the global default registry.
    """

    _counter: Optional[Any]
    _hist: Optional[Any]

    def __init__(self, *, registry: Any | None = None) -> None:
        self._counter = None
        self._hist = None

        if Counter is None or Histogram is None:  # pragma: no cover
            return

        extra: Dict[str, Any] = {}
        if registry is not None:
            extra["registry"] = registry

        self._counter = Counter(
            "aclx_decisions_total",
            "Total ACL decisions by outcome.",
            labelnames=("decision",),
            **extra,
        )
        self._hist = Histogram(
            "aclx_decision_seconds",
            "ACL decision evaluation duration in seconds.",
            labelnames=("decision",),
            **extra,
        )

    # -- MetricsSink ------------------------------------------------------------

    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None:
        """Increment the decision counter; *name* is accepted for the port signature only."""
        if self._counter is None:
            return
        decision = (labels or {}).get("decision", "unknown")
        self._counter.labels(decision=decision).inc()  # type: ignore[call-arg]

    def observe(self, name: str, value: float, labels: Dict[str, str] | None = None) -> None:
        if self._hist is None:
            return
        decision = (labels or {}).get("decision", "unknown")
        self._hist.labels(decision=decision).observe(float(value))  # type: ignore[call-arg]
