import logging

import pytest

from aclx import Acl
from aclx.logging.context import clear_current_trace_id, set_current_trace_id


class FakeSink:
    def __init__(self):
        self.payloads = []

    def log(self, payload):
        self.payloads.append(payload)


class FakeMetrics:
    def __init__(self):
        self.incs = []

    def inc(self, name, labels=None):
        self.incs.append((name, dict(labels or {})))


class FakeObservingMetrics(FakeMetrics):
    def __init__(self):
        super().__init__()
        self.observed = []

    def observe(self, name, value, labels=None):
        self.observed.append((name, value, dict(labels or {})))


class Boom:
    def log(self, payload):
        raise RuntimeError("sink down")

    def inc(self, name, labels=None):
        raise RuntimeError("metrics down")

    def observe(self, name, value, labels=None):
        raise RuntimeError("histogram down")


@pytest.fixture
def acl_with_sink():
    sink = FakeSink()
    acl = Acl(logger_sink=sink).add_role("guest").add_resource("doc")
    acl.allow("guest", "doc", "read")
    return acl, sink


def test_payload_describes_the_query(acl_with_sink):
    acl, sink = acl_with_sink
    assert acl.is_allowed("guest", "doc", "read") is True
    assert acl.is_allowed("guest", "doc", "write") is False

    allow, deny = sink.payloads
    assert allow["decision"] == "allow" and allow["allowed"] is True
    assert allow["role"] == "guest" and allow["resource"] == "doc"
    assert allow["privilege"] == "read"
    assert allow["duration_ms"] >= 0
    assert deny["decision"] == "deny" and deny["allowed"] is False


def test_payload_for_wildcard_query(acl_with_sink):
    acl, sink = acl_with_sink
    acl.is_allowed()
    payload = sink.payloads[-1]
    assert payload["role"] is None and payload["resource"] is None
    assert payload["privilege"] is None


def test_payload_carries_trace_id(acl_with_sink):
    acl, sink = acl_with_sink
    token = set_current_trace_id("trace-42")
    try:
        acl.is_allowed("guest", "doc", "read")
    finally:
        clear_current_trace_id(token)
    assert sink.payloads[-1]["trace_id"] == "trace-42"


def test_metrics_counter_labels():
    metrics = FakeMetrics()
    acl = Acl(metrics=metrics)
    acl.is_allowed()
    acl.allow()
    acl.is_allowed()
    assert metrics.incs == [
        ("aclx_decisions_total", {"decision": "deny"}),
        ("aclx_decisions_total", {"decision": "allow"}),
    ]


def test_metrics_observe_when_supported():
    metrics = FakeObservingMetrics()
    Acl(metrics=metrics).is_allowed()
    name, value, labels = metrics.observed[-1]
    assert name == "aclx_decision_seconds"
    assert value >= 0
    assert labels == {"decision": "deny"}


def test_failing_sinks_do_not_change_the_decision(caplog):
    caplog.set_level(logging.ERROR, logger="aclx.core.acl")
    boom = Boom()
    acl = Acl(logger_sink=boom, metrics=boom)
    acl.allow()
    assert acl.is_allowed() is True
    messages = [r.getMessage() for r in caplog.records]
    assert any("decision logger failed" in m for m in messages)
    assert any("metrics inc failed" in m for m in messages)
    assert any("metrics observe failed" in m for m in messages)


def test_unknown_role_is_not_reported(acl_with_sink):
    acl, sink = acl_with_sink
    with pytest.raises(LookupError):
        acl.is_allowed("ghost")
    assert sink.payloads == []
