from __future__ import annotations

from typing import Any, Dict, Optional

from aclx.core.ports import MetricsSink

try:
    from opentelemetry.metrics import get_meter  # type: ignore
except Exception:  # pragma: no cover
    get_meter = None  # type: ignore


class OpenTelemetryMetrics(MetricsSink):
    """OpenTelemetry-based MetricsSink.

    Creates:
      - Counter: aclx_decisions_total (attributes: decision)
      - Histogram: aclx_decision_seconds (unit: s, attributes: decision)
    """

    _counter: Optional[Any]
    _hist: Optional[Any]

    def __init__(self, meter_name: str = "aclx.metrics") -> None:
        self._counter = None
        self._hist = None

        if get_meter is None:  # pragma: no cover
            return

        meter = get_meter(meter_name)
        self._counter = meter.create_counter(
            name="aclx_decisions_total",
            description="Total ACL decisions by outcome.",
        )
        create_hist = getattr(meter, "create_histogram", None)
        if create_hist is not None:
            self._hist = create_hist(
                name="aclx_decision_seconds",
                description="ACL decision evaluation duration in seconds.",
                unit="s",
            )

    # -- MetricsSink ------------------------------------------------------------

    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None:
        if self._counter is None:
            return
        decision = (labels or {}).get("decision", "unknown")
        self._counter.add(1, {"decision": decision})

    def observe(self, name: str, value: float, labels: Dict[str, str] | None = None) -> None:
        if self._hist is None:
            return
        decision = (labels or {}).get("decision", "unknown")
        self._hist.record(float(value), {"decision": decision})
