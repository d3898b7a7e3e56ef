"""Tests for TraceFile."""

from datetime import datetime, timezone

import numpy as np
import pytest

from archiver.sink import TraceFile, TraceFileError


class TestTraceFileCreate:
    """Tests for TraceFile.create()."""

    @pytest.mark.asyncio
    async def test_create_new_file(self, tmp_path):
        """A new file records its digitizer count."""
        tf = await TraceFile.create(tmp_path / "nested" / "run.db", digitizer_count=8)

        assert tf.path.exists()
        assert tf.filename == "run.db"
        assert tf.digitizer_count == 8
        assert await tf.frame_count() == 0
        await tf.close()

    @pytest.mark.asyncio
    async def test_reopen_appends(self, tmp_path, make_trace):
        """Reopening with the same layout keeps earlier frames."""
        path = tmp_path / "run.db"
        tf = await TraceFile.create(path, digitizer_count=2)
        await tf.push(make_trace(frame_number=1))
        await tf.close()

        reopened = await TraceFile.create(path, digitizer_count=2)
        await reopened.push(make_trace(frame_number=2))

        assert await reopened.frame_count() == 2
        await reopened.close()

    @pytest.mark.asyncio
    async def test_reopen_with_other_layout(self, tmp_path):
        """The first writer's digitizer count wins."""
        path = tmp_path / "run.db"
        tf = await TraceFile.create(path, digitizer_count=2)
        await tf.close()

        with pytest.raises(TraceFileError):
            await TraceFile.create(path, digitizer_count=4)

    @pytest.mark.asyncio
    async def test_not_a_database(self, tmp_path):
        """A colliding non-trace file is reported, not overwritten."""
        path = tmp_path / "run.db"
        path.write_bytes(b"this is not sqlite" * 100)

        with pytest.raises(TraceFileError):
            await TraceFile.create(path, digitizer_count=2)

        assert path.read_bytes().startswith(b"this is not sqlite")


class TestTraceFilePush:
    """Tests for TraceFile.push()."""

    @pytest.mark.asyncio
    async def test_push_stores_channels(self, trace_file, make_trace):
        """Voltages are stored as uint16 and read back intact."""
        message = make_trace(digitizer_id=3, frame_number=7, channels=3, samples=5)
        message.metadata.timestamp = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        await trace_file.push(message)
        frames = await trace_file.read_frames()

        assert len(frames) == 1
        frame = frames[0]
        assert frame["digitizer_id"] == 3
        assert frame["frame_number"] == 7
        assert frame["sample_rate"] == 1_000_000_000
        assert frame["timestamp"] == message.metadata.timestamp
        assert sorted(frame["channels"]) == [0, 1, 2]
        assert frame["channels"][2].dtype == np.dtype("<u2")
        np.testing.assert_array_equal(frame["channels"][2], [406] * 5)

    @pytest.mark.asyncio
    async def test_push_digitizer_out_of_range(self, trace_file, make_trace):
        with pytest.raises(TraceFileError):
            await trace_file.push(make_trace(digitizer_id=4))

        assert await trace_file.frame_count() == 0

    @pytest.mark.asyncio
    async def test_duplicate_channel_rolled_back(self, trace_file, make_trace):
        """A frame that cannot be fully written leaves no partial row."""
        message = make_trace(channels=2)
        message.channels[1].channel = 0

        with pytest.raises(TraceFileError):
            await trace_file.push(message)

        assert await trace_file.frame_count() == 0
        await trace_file.push(make_trace())
        assert await trace_file.frame_count() == 1

    @pytest.mark.asyncio
    async def test_unbindable_frame_value(self, trace_file, make_trace):
        """Values SQLite cannot store fail the frame, not the caller."""
        message = make_trace(frame_number=1)
        message.metadata.protons_per_pulse = 2**64 - 1

        with pytest.raises(TraceFileError):
            await trace_file.push(message)

        assert await trace_file.frame_count() == 0

    @pytest.mark.asyncio
    async def test_channel_failure_leaves_no_frame_row(self, trace_file, make_trace):
        """A frame failing after its frame row is written is fully rolled back."""
        broken = make_trace(frame_number=1)
        broken.channels[1].channel = 2**64

        with pytest.raises(TraceFileError):
            await trace_file.push(broken)
        await trace_file.push(make_trace(frame_number=7))

        frames = await trace_file.read_frames()
        assert [f["frame_number"] for f in frames] == [7]
        assert sorted(frames[0]["channels"]) == [0, 1]

    @pytest.mark.asyncio
    async def test_push_after_close(self, tmp_path, make_trace):
        tf = await TraceFile.create(tmp_path / "run.db", digitizer_count=1)
        await tf.close()

        assert tf.closed
        with pytest.raises(TraceFileError):
            await tf.push(make_trace())

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, tmp_path):
        tf = await TraceFile.create(tmp_path / "run.db", digitizer_count=1)
        await tf.close()
        await tf.close()
        assert tf.closed


class TestTraceFileFactory:
    """Tests for TraceFileFactory."""

    @pytest.mark.asyncio
    async def test_create_under_output_dir(self, trace_file_factory):
        tf = await trace_file_factory.create("1970-01-01T00:00:01.000Z.db", 4)

        assert tf.path == trace_file_factory.output_dir / "1970-01-01T00:00:01.000Z.db"
        assert trace_file_factory.extension == "db"
        await tf.close()
