"""Wire schemas module."""

from .codec import (
    HEADER_SIZE,
    RUN_START_IDENTIFIER,
    RUN_STOP_IDENTIFIER,
    TRACE_IDENTIFIER,
    DecodeError,
    decode_run_start,
    decode_run_stop,
    decode_trace_message,
    encode_run_start,
    encode_run_stop,
    encode_trace_message,
    has_identifier,
)
from .types import (
    ChannelTrace,
    DigitizerAnalogTraceMessage,
    FrameMetadata,
    Intensity,
    RunStartPayload,
    RunStopPayload,
)

__all__ = [
    # Types
    "ChannelTrace",
    "DigitizerAnalogTraceMessage",
    "FrameMetadata",
    "Intensity",
    "RunStartPayload",
    "RunStopPayload",
    # Codec
    "HEADER_SIZE",
    "TRACE_IDENTIFIER",
    "RUN_START_IDENTIFIER",
    "RUN_STOP_IDENTIFIER",
    "DecodeError",
    "has_identifier",
    "encode_trace_message",
    "encode_run_start",
    "encode_run_stop",
    "decode_trace_message",
    "decode_run_start",
    "decode_run_stop",
]
