import logging

import pytest

from aclx import Acl, DecisionLogger
from aclx.logging.context import (
    TraceIdFilter,
    clear_current_trace_id,
    gen_trace_id,
    get_current_trace_id,
    set_current_trace_id,
)


class Sink:
    def __init__(self):
        self.payloads = []

    def log(self, payload):
        self.payloads.append(payload)


@pytest.fixture
def audit_logger():
    logger = logging.getLogger("aclx.audit")
    trace_filter = TraceIdFilter()
    logger.addFilter(trace_filter)
    yield logger
    logger.removeFilter(trace_filter)


def test_decisions_outside_a_trace_carry_none():
    sink = Sink()
    Acl(logger_sink=sink).is_allowed()
    assert get_current_trace_id() is None
    assert sink.payloads[-1]["trace_id"] is None


def test_restoring_the_token_ends_the_trace_for_later_decisions():
    sink = Sink()
    acl = Acl(logger_sink=sink)
    trace_id = gen_trace_id()
    token = set_current_trace_id(trace_id)
    acl.is_allowed()
    clear_current_trace_id(token)
    acl.is_allowed()
    assert [p["trace_id"] for p in sink.payloads] == [trace_id, None]


def test_nested_traces_unwind_in_order():
    outer = set_current_trace_id("outer")
    inner = set_current_trace_id("inner")
    assert get_current_trace_id() == "inner"
    clear_current_trace_id(inner)
    assert get_current_trace_id() == "outer"
    clear_current_trace_id(outer)
    assert get_current_trace_id() is None


def test_audit_records_get_the_trace_id(caplog, audit_logger):
    caplog.set_level(logging.INFO, logger="aclx.audit")
    acl = Acl(logger_sink=DecisionLogger()).add_role("guest")
    acl.allow("guest", None, "read")

    set_current_trace_id("req-7")
    try:
        acl.is_allowed("guest", None, "read")
    finally:
        clear_current_trace_id()

    record = caplog.records[-1]
    assert record.trace_id == "req-7"
    assert record.getMessage() == "aclx decision=allow role=guest privilege=read trace_id=req-7"


def test_filter_sets_none_without_a_trace(caplog, audit_logger):
    caplog.set_level(logging.INFO, logger="aclx.audit")
    audit_logger.info("plain")
    assert caplog.records[-1].trace_id is None
