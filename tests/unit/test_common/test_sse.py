"""
SSE Helper Unit Tests
"""

import json

from responses_gateway.common.sse import SSEDecoder, encode_sse_event
from responses_gateway.common.timer import Timer


class TestSSEDecoder:
    def test_events_split_across_chunks(self):
        decoder = SSEDecoder()
        assert decoder.feed(b'data: {"a"') == []
        assert decoder.feed(b': 1}\n\ndata: [DONE]\n\n') == ['{"a": 1}', "[DONE]"]

    def test_crlf_and_other_fields(self):
        decoder = SSEDecoder()
        payloads = decoder.feed(b"event: message\r\nid: 3\r\ndata: hello\r\n\r\n: comment\r\n\r\n")
        assert payloads == ["hello"]

    def test_multi_line_data(self):
        assert SSEDecoder().feed(b"data: a\ndata: b\n\n") == ["a\nb"]

    def test_flush_returns_unterminated_event(self):
        decoder = SSEDecoder()
        decoder.feed(b"data: tail")
        assert decoder.flush() == ["tail"]
        assert decoder.flush() == []


def test_encode_sse_event():
    frame = encode_sse_event({"type": "response.output_text.delta", "delta": "héllo"})
    event_line, data_line, *_ = frame.decode("utf-8").split("\n")

    assert event_line == "event: response.output_text.delta"
    assert json.loads(data_line[len("data: "):])["delta"] == "héllo"
    assert frame.endswith(b"\n\n")


def test_timer_exceeded():
    timer = Timer()
    assert timer.elapsed_ms == 0
    timer.start()
    assert timer.exceeded(60000) is False
    assert timer.exceeded(-1) is True


def test_timer_zero_limit_is_exceeded_immediately():
    timer = Timer().start()
    assert timer.exceeded(0) is True
