"""Upstream stream translation."""

from .channel import ChannelClosedError, OutputChannel
from .translator import StreamSession, StreamState, StreamTranslator, UpstreamBody, new_decoder

__all__ = [
    "ChannelClosedError",
    "OutputChannel",
    "StreamSession",
    "StreamState",
    "StreamTranslator",
    "UpstreamBody",
    "new_decoder",
]
