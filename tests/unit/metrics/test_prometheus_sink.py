import pytest

import aclx.metrics.prometheus as prom
from aclx import Acl


class _Child:
    def __init__(self, parent, labels):
        self.parent = parent
        self.labels = labels

    def inc(self, amount=1):
        self.parent.calls.append(("inc", self.labels["decision"], amount))

    def observe(self, value):
        self.parent.calls.append(("observe", self.labels["decision"], float(value)))


class _Instrument:
    created = []

    def __init__(self, name, documentation, labelnames=(), **kwargs):
        self.name = name
        self.labelnames = tuple(labelnames)
        self.kwargs = kwargs
        self.calls = []
        _Instrument.created.append(self)

    def labels(self, **labels):
        assert tuple(labels) == self.labelnames
        return _Child(self, labels)


@pytest.fixture
def fake_client(monkeypatch):
    _Instrument.created = []
    monkeypatch.setattr(prom, "Counter", _Instrument)
    monkeypatch.setattr(prom, "Histogram", _Instrument)
    return _Instrument


def test_instruments_share_the_decision_label(fake_client):
    registry = object()
    prom.PrometheusMetrics(registry=registry)
    counter, hist = fake_client.created
    assert counter.name == "aclx_decisions_total"
    assert hist.name == "aclx_decision_seconds"
    assert counter.labelnames == hist.labelnames == ("decision",)
    assert counter.kwargs == hist.kwargs == {"registry": registry}


def test_engine_decisions_reach_counter_and_histogram(fake_client):
    sink = prom.PrometheusMetrics()
    acl = Acl(metrics=sink).add_role("guest")
    acl.allow("guest", None, "read")

    assert acl.is_allowed("guest", None, "read") is True
    assert acl.is_allowed("guest", None, "write") is False

    observed = sink._hist.calls
    assert sink._counter.calls == [("inc", "allow", 1), ("inc", "deny", 1)]
    assert [c[1] for c in observed] == ["allow", "deny"]
    assert all(c[0] == "observe" and c[2] >= 0 for c in observed)


def test_missing_client_makes_the_sink_inert(monkeypatch):
    monkeypatch.setattr(prom, "Counter", None)
    monkeypatch.setattr(prom, "Histogram", None)
    sink = prom.PrometheusMetrics()
    assert sink._counter is None and sink._hist is None

    acl = Acl(metrics=sink)
    acl.allow()
    assert acl.is_allowed() is True
