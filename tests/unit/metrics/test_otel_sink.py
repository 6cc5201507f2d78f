import pytest

import aclx.metrics.otel as otel
from aclx import Acl


class _Recorder:
    def __init__(self):
        self.added = []
        self.recorded = []

    def add(self, amount, attributes=None):
        self.added.append((amount, dict(attributes or {})))

    def record(self, value, attributes=None):
        self.recorded.append((float(value), dict(attributes or {})))


class _Meter:
    def __init__(self, name, with_histogram=True):
        self.name = name
        self.instruments = {}
        if not with_histogram:
            self.create_histogram = None

    def create_counter(self, name, **kwargs):
        return self.instruments.setdefault(name, _Recorder())

    def create_histogram(self, name, **kwargs):
        assert kwargs.get("unit") == "s"
        return self.instruments.setdefault(name, _Recorder())


@pytest.fixture
def meters(monkeypatch):
    made = []

    def get_meter(name):
        made.append(_Meter(name))
        return made[-1]

    monkeypatch.setattr(otel, "get_meter", get_meter)
    return made


def test_engine_decision_is_counted_and_timed(meters):
    acl = Acl(metrics=otel.OpenTelemetryMetrics())
    acl.add_role("guest").add_resource("doc")
    acl.allow("guest", "doc")

    acl.is_allowed("guest", "doc", "read")
    acl.is_allowed("guest")

    (meter,) = meters
    assert meter.name == "aclx.metrics"
    counter = meter.instruments["aclx_decisions_total"]
    hist = meter.instruments["aclx_decision_seconds"]
    assert counter.added == [(1, {"decision": "allow"}), (1, {"decision": "deny"})]
    assert [attrs for _, attrs in hist.recorded] == [{"decision": "allow"}, {"decision": "deny"}]
    assert all(value >= 0 for value, _ in hist.recorded)


def test_meter_without_histograms_only_counts(monkeypatch):
    monkeypatch.setattr(otel, "get_meter", lambda name: _Meter(name, with_histogram=False))
    sink = otel.OpenTelemetryMetrics(meter_name="aclx.custom")
    assert sink._hist is None

    Acl(metrics=sink).is_allowed()
    assert sink._counter.added == [(1, {"decision": "deny"})]


def test_missing_api_makes_the_sink_inert(monkeypatch):
    monkeypatch.setattr(otel, "get_meter", None)
    sink = otel.OpenTelemetryMetrics()
    assert sink._counter is None and sink._hist is None
    sink.inc("aclx_decisions_total", {"decision": "allow"})
    sink.observe("aclx_decision_seconds", 0.1, {"decision": "allow"})
