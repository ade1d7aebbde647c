"""Client-side streaming chat pipeline."""

from .accumulator import MessageAccumulator
from .gate import RequestGate, RequestTicket
from .retry import RetryAttempt, RetryPolicy, run_with_retry
from .session import ChatSession, ErrorNotice
from .stream import DeltaStream, EventKind, StreamDecoder, StreamEvent, iter_deltas, parse_event
from .transport import ChatTransport, error_from_response

__all__ = [
    "ChatSession",
    "ChatTransport",
    "DeltaStream",
    "ErrorNotice",
    "EventKind",
    "MessageAccumulator",
    "RequestGate",
    "RequestTicket",
    "RetryAttempt",
    "RetryPolicy",
    "StreamDecoder",
    "StreamEvent",
    "error_from_response",
    "iter_deltas",
    "parse_event",
    "run_with_retry",
]
