"""
Binary framing for bus payloads.

Every payload starts with an 8 byte header: a little-endian uint32 offset
to the body (always 8) followed by a 4 byte file identifier. The identifier
sits at the same position as a flatbuffers file identifier, so producers
that speak the real schemas are classified the same way. The body is the
JSON form of the matching pydantic model.
"""

import struct

from pydantic import BaseModel, ValidationError

from .types import DigitizerAnalogTraceMessage, RunStartPayload, RunStopPayload

TRACE_IDENTIFIER = b"dat2"
RUN_START_IDENTIFIER = b"pl72"
RUN_STOP_IDENTIFIER = b"6s4t"

_HEADER = struct.Struct("<I4s")
HEADER_SIZE = _HEADER.size


class DecodeError(ValueError):
    """Payload carries a known identifier but its body cannot be parsed."""


def has_identifier(payload: bytes, identifier: bytes) -> bool:
    """Check the file identifier of a payload without decoding the body."""
    if len(payload) < HEADER_SIZE:
        return False
    return payload[4:HEADER_SIZE] == identifier


def _encode(identifier: bytes, body: BaseModel) -> bytes:
    return _HEADER.pack(HEADER_SIZE, identifier) + body.model_dump_json().encode("utf-8")


def _decode(payload: bytes, identifier: bytes, model: type[BaseModel]):
    if not has_identifier(payload, identifier):
        raise DecodeError(f"Payload does not carry identifier {identifier!r}")

    (offset, _) = _HEADER.unpack_from(payload)
    if offset < HEADER_SIZE or offset > len(payload):
        raise DecodeError(f"Body offset {offset} out of range")

    try:
        return model.model_validate_json(payload[offset:])
    except ValidationError as e:
        raise DecodeError(
            f"Malformed {identifier.decode('ascii')} body: {e.error_count()} error(s)"
        ) from e


def encode_trace_message(message: DigitizerAnalogTraceMessage) -> bytes:
    return _encode(TRACE_IDENTIFIER, message)


def encode_run_start(payload: RunStartPayload) -> bytes:
    return _encode(RUN_START_IDENTIFIER, payload)


def encode_run_stop(payload: RunStopPayload) -> bytes:
    return _encode(RUN_STOP_IDENTIFIER, payload)


def decode_trace_message(payload: bytes) -> DigitizerAnalogTraceMessage:
    """Decode a trace payload, raising DecodeError if it is malformed."""
    return _decode(payload, TRACE_IDENTIFIER, DigitizerAnalogTraceMessage)


def decode_run_start(payload: bytes) -> RunStartPayload:
    return _decode(payload, RUN_START_IDENTIFIER, RunStartPayload)


def decode_run_stop(payload: bytes) -> RunStopPayload:
    return _decode(payload, RUN_STOP_IDENTIFIER, RunStopPayload)
