"""Unit tests for event-stream decoding."""
import pytest
from conftest import sse_payload, sse_record
from hypothesis import given
from hypothesis import strategies as st

from lexa.client import DeltaStream, EventKind, StreamDecoder, iter_deltas, parse_event


def feed_all(chunks: list[bytes]) -> tuple[str, DeltaStream]:
    stream = DeltaStream()
    tokens: list[str] = []
    for chunk in chunks:
        tokens.extend(stream.feed(chunk))
    tokens.extend(stream.finish())
    return "".join(tokens), stream


class TestParseEvent:
    """Tests for single-line classification."""

    def test_delta(self):
        event = parse_event('data: {"choices":[{"delta":{"content":"Hi"}}]}')
        assert event.kind is EventKind.DELTA
        assert event.text == "Hi"

    def test_done(self):
        assert parse_event("data: [DONE]").kind is EventKind.DONE

    def test_non_data_line_ignored(self):
        assert parse_event("event: message").kind is EventKind.IGNORED

    def test_truncated_json_is_incomplete(self):
        assert parse_event('data: {"choices":[{"delta"').kind is EventKind.INCOMPLETE

    def test_record_without_content(self):
        """Test role-only and finish records, which carry no text."""
        event = parse_event('data: {"choices":[{"delta":{"role":"assistant"}}]}')
        assert event.kind is EventKind.DELTA
        assert event.text is None

        event = parse_event('data: {"choices":[]}')
        assert event.text is None


class TestStreamDecoder:
    """Tests for line reassembly."""

    def test_holds_partial_line(self):
        decoder = StreamDecoder()
        decoder.feed(b"data: abc")
        assert decoder.next_line() is None
        decoder.feed(b"def\n")
        assert decoder.next_line() == "data: abcdef"

    def test_strips_carriage_return(self):
        decoder = StreamDecoder()
        decoder.feed(b"data: one\r\n\r\ndata: two\r\n")
        assert list(decoder.lines()) == ["data: one", "data: two"]

    def test_skips_blank_and_comment_lines(self):
        decoder = StreamDecoder()
        decoder.feed(b": keep-alive\n\n   \ndata: x\n")
        assert list(decoder.lines()) == ["data: x"]

    def test_multibyte_character_split_across_chunks(self):
        encoded = "data: ⚖️\n".encode("utf-8")
        decoder = StreamDecoder()
        decoder.feed(encoded[:7])
        decoder.feed(encoded[7:])
        assert decoder.next_line() == "data: ⚖️"

    def test_finish_terminates_trailing_line(self):
        decoder = StreamDecoder()
        decoder.feed(b"data: tail")
        decoder.finish()
        assert decoder.next_line() == "data: tail"

    def test_push_back(self):
        decoder = StreamDecoder()
        decoder.feed(b"data: b\n")
        decoder.push_back("data: a")
        assert list(decoder.lines()) == ["data: a", "data: b"]


class TestDeltaStream:
    """Tests for chunk-to-token decoding."""

    def test_single_chunk(self, hi_there_payload):
        content, stream = feed_all([hi_there_payload])
        assert content == "Hi there"
        assert stream.discarded == 0

    @pytest.mark.parametrize("use_crlf", [False, True])
    def test_every_split_offset(self, hi_there_payload, use_crlf):
        """Test that splitting at any byte offset yields the same content."""
        payload = hi_there_payload.replace(b"\n", b"\r\n") if use_crlf else hi_there_payload

        for offset in range(len(payload) + 1):
            content, _ = feed_all([payload[:offset], payload[offset:]])
            assert content == "Hi there", f"split at {offset}"

    @given(st.lists(st.integers(min_value=0, max_value=200), max_size=8))
    def test_arbitrary_chunking(self, cuts: list[int]):
        """Property test: any chunking of a valid payload decodes identically."""
        payload = sse_payload("Namaste", " – ", "मित्र", " ⚖️")
        offsets = sorted({min(cut, len(payload)) for cut in cuts})
        bounds = [0, *offsets, len(payload)]
        chunks = [payload[a:b] for a, b in zip(bounds, bounds[1:])]

        content, stream = feed_all(chunks)

        assert content == "Namaste – मित्र ⚖️"
        assert stream.done

    def test_done_sentinel_recorded(self):
        _, stream = feed_all([sse_payload("a")])
        assert stream.done

    def test_ignores_comments_and_other_fields(self):
        payload = b": heartbeat\n\nevent: ping\n" + sse_payload("ok")
        content, _ = feed_all([payload])
        assert content == "ok"

    def test_record_continued_on_next_line_is_joined(self):
        """Test that a record broken by a newline is re-parsed with its continuation."""
        payload = b'data: {"choices":[{"delta":\n{"content":"joined"}}]}\n\n'
        content, stream = feed_all([payload])
        assert content == "joined"
        assert stream.discarded == 0

    def test_continuation_arriving_later(self):
        first = b'data: {"choices":[{"delta":\n'
        second = b'{"content":"late"}}]}\n\n'
        content, _ = feed_all([first, second])
        assert content == "late"

    def test_malformed_record_dropped(self):
        """Test that a bad record followed by a new data line is discarded."""
        payload = b"data: {not json\n\n" + sse_record("after").encode()
        content, stream = feed_all([payload])
        assert content == "after"
        assert stream.discarded == 1

    def test_unterminated_record_dropped_at_end(self):
        content, stream = feed_all([sse_payload("ok", done=False) + b'data: {"choices"'])
        assert content == "ok"
        assert stream.discarded == 1

    def test_data_after_done_still_processed(self):
        payload = b"data: [DONE]\n\n" + sse_record("extra").encode()
        content, stream = feed_all([payload])
        assert stream.done
        assert content == "extra"


class TestIterDeltas:
    """Tests for the async token iterator."""

    @pytest.mark.asyncio
    async def test_yields_tokens_in_order(self):
        payload = sse_payload("one", " two", " three")

        async def chunks():
            for i in range(0, len(payload), 5):
                yield payload[i:i + 5]

        tokens = [token async for token in iter_deltas(chunks())]
        assert tokens == ["one", " two", " three"]
