"""Testing utilities for in-process gateway simulations."""

from .fake_upstream import FakeBodyStream, FakeUpstream, StreamError, UpstreamReply

__all__ = [
    "FakeBodyStream",
    "FakeUpstream",
    "StreamError",
    "UpstreamReply",
]
