from __future__ import annotations

import logging

from shapeshyft.observability.tracing import Span, log_event, new_trace_id


def test_span_end_sets_duration_once() -> None:
    span = Span(name='llm.generate', trace_id=new_trace_id())
    assert span.duration_ms is None

    span.end()
    first = span.duration_ms
    span.end()

    assert first is not None and first >= 0
    assert span.duration_ms == first


def test_log_event_carries_span_and_fields(caplog) -> None:
    span = Span(name='llm.generate', trace_id='t-1', attributes={'provider': 'openai'})
    span.end()

    with caplog.at_level(logging.INFO, logger='shapeshyft.trace'):
        log_event('span.end', trace_id='t-1', span=span, endpoint_id='ep-1')

    record = caplog.records[-1]
    assert record.getMessage() == 'span.end'
    assert record._extra['trace_id'] == 't-1'
    assert record._extra['endpoint_id'] == 'ep-1'
    assert record._extra['span']['attributes'] == {'provider': 'openai'}
    assert record._extra['span']['duration_ms'] == span.duration_ms
