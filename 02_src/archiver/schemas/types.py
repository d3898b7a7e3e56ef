"""Wire-level message schemas carried on the control and trace topics."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field

Intensity = Annotated[int, Field(ge=0, le=0xFFFF)]
U32 = Annotated[int, Field(ge=0, le=0xFFFF_FFFF)]
U64 = Annotated[int, Field(ge=0, le=0xFFFF_FFFF_FFFF_FFFF)]


class FrameMetadata(BaseModel):
    """Per-frame metadata stamped by the digitizer."""

    frame_number: U32
    period_number: U32 = 0
    protons_per_pulse: U64 = 0
    running: bool = True
    timestamp: datetime | None = None
    veto_flags: U32 = 0


class ChannelTrace(BaseModel):
    """Voltage samples of a single channel."""

    channel: U32
    voltage: list[Intensity]


class DigitizerAnalogTraceMessage(BaseModel):
    """One frame of analog trace data from one digitizer."""

    digitizer_id: int = Field(ge=0, le=255)
    metadata: FrameMetadata
    sample_rate: int = Field(gt=0)
    channels: list[ChannelTrace] = Field(default_factory=list)


class RunStartPayload(BaseModel):
    """Run start signal."""

    run_name: str
    instrument_name: str = ""
    start_time: int  # ms since epoch


class RunStopPayload(BaseModel):
    """Run stop signal."""

    run_name: str
    stop_time: int  # ms since epoch
