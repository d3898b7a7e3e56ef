"""SQLite trace file sink."""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite
import numpy as np

from ..logging_config import get_logger
from ..schemas import DigitizerAnalogTraceMessage

logger = get_logger(__name__)

VOLTAGE_DTYPE = np.dtype("<u2")
SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class TraceFileError(RuntimeError):
    """A trace file could not be created or written."""


class ITraceSink(Protocol):
    """Append-only destination for the frames of one run."""

    @property
    def filename(self) -> str:
        """Artifact name."""
        ...

    async def push(self, message: DigitizerAnalogTraceMessage) -> None:
        """Append one frame. Raises TraceFileError on failure."""
        ...

    async def close(self) -> None:
        """Release the artifact."""
        ...


class ISinkFactory(Protocol):
    """Creates sinks for new runs."""

    @property
    def extension(self) -> str:
        """File extension appended to artifact names."""
        ...

    async def create(self, name: str, digitizer_count: int) -> ITraceSink:
        """Create (or reopen) the artifact called ``name``."""
        ...


class TraceFile:
    """One run's frames, stored in a SQLite file."""

    def __init__(self, path: Path, digitizer_count: int, conn: aiosqlite.Connection):
        self._path = path
        self._digitizer_count = digitizer_count
        self._conn: aiosqlite.Connection | None = conn

    @classmethod
    async def create(cls, path: str | Path, digitizer_count: int) -> "TraceFile":
        """
        Open a trace file for writing.

        A new file is initialised with the given digitizer count. An existing
        file is reopened for appending, provided it was created with the same
        digitizer count; the first writer's layout wins.

        Raises:
            TraceFileError: the file cannot be opened or its layout differs.
        """
        path = Path(path)
        existed = path.exists()

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(path)
        except (OSError, sqlite3.Error) as e:
            raise TraceFileError(f"Cannot open {path}: {e}") from e

        try:
            recorded = await cls._initialise(conn, digitizer_count)
        except (OSError, sqlite3.Error) as e:
            await conn.close()
            raise TraceFileError(f"Cannot initialise {path}: {e}") from e

        if recorded != digitizer_count:
            await conn.close()
            raise TraceFileError(
                f"{path} was created for {recorded} digitizers, not {digitizer_count}"
            )

        if existed:
            logger.info("Reopened existing trace file %s", path)
        return cls(path, digitizer_count, conn)

    @staticmethod
    async def _initialise(conn: aiosqlite.Connection, digitizer_count: int) -> int:
        schema_sql = SCHEMA_PATH.read_text(encoding="utf-8")
        await conn.executescript(schema_sql)

        cursor = await conn.execute(
            "SELECT value FROM run_info WHERE key = 'digitizer_count'"
        )
        row = await cursor.fetchone()
        if row is not None:
            return int(row[0])

        await conn.executemany(
            "INSERT INTO run_info (key, value) VALUES (?, ?)",
            [
                ("digitizer_count", str(digitizer_count)),
                ("created_at", datetime.now(timezone.utc).isoformat()),
            ],
        )
        await conn.commit()
        return digitizer_count

    @property
    def path(self) -> Path:
        return self._path

    @property
    def filename(self) -> str:
        return self._path.name

    @property
    def digitizer_count(self) -> int:
        return self._digitizer_count

    @property
    def closed(self) -> bool:
        return self._conn is None

    async def push(self, message: DigitizerAnalogTraceMessage) -> None:
        """Append one frame and its channel traces."""
        if self._conn is None:
            raise TraceFileError(f"{self.filename} is closed")

        if message.digitizer_id >= self._digitizer_count:
            raise TraceFileError(
                f"Digitizer {message.digitizer_id} out of range "
                f"(file holds {self._digitizer_count})"
            )

        metadata = message.metadata
        try:
            cursor = await self._conn.execute(
                """
                INSERT INTO frames (
                    digitizer_id, frame_number, frame_timestamp, sample_rate,
                    period_number, protons_per_pulse, running, veto_flags
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    message.digitizer_id,
                    metadata.frame_number,
                    metadata.timestamp.isoformat() if metadata.timestamp else None,
                    message.sample_rate,
                    metadata.period_number,
                    metadata.protons_per_pulse,
                    int(metadata.running),
                    metadata.veto_flags,
                ),
            )
            frame_id = cursor.lastrowid

            await self._conn.executemany(
                """
                INSERT INTO channel_traces (frame_id, channel, sample_count, voltage)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (
                        frame_id,
                        channel.channel,
                        len(channel.voltage),
                        np.asarray(channel.voltage, dtype=VOLTAGE_DTYPE).tobytes(),
                    )
                    for channel in message.channels
                ],
            )
            await self._conn.commit()
        except (sqlite3.Error, OverflowError, ValueError) as e:
            await self._conn.rollback()
            raise TraceFileError(f"Failed to write frame to {self.filename}: {e}") from e
        except BaseException:
            await self._conn.rollback()
            raise

    async def close(self) -> None:
        """Close the underlying connection."""
        if self._conn is None:
            return

        conn, self._conn = self._conn, None
        try:
            await conn.close()
        except sqlite3.Error as e:
            raise TraceFileError(f"Failed to close {self.filename}: {e}") from e

    async def frame_count(self) -> int:
        if self._conn is None:
            raise TraceFileError(f"{self.filename} is closed")
        cursor = await self._conn.execute("SELECT COUNT(*) FROM frames")
        row = await cursor.fetchone()
        return row[0]

    async def read_frames(self) -> list[dict]:
        """Read back every frame in insertion order."""
        if self._conn is None:
            raise TraceFileError(f"{self.filename} is closed")

        cursor = await self._conn.execute(
            """
            SELECT id, digitizer_id, frame_number, frame_timestamp, sample_rate
            FROM frames
            ORDER BY id ASC
            """
        )
        frames = []
        for frame_id, digitizer_id, frame_number, frame_timestamp, sample_rate in (
            await cursor.fetchall()
        ):
            channel_cursor = await self._conn.execute(
                """
                SELECT channel, voltage FROM channel_traces
                WHERE frame_id = ?
                ORDER BY channel ASC
                """,
                (frame_id,),
            )
            channels = {
                channel: np.frombuffer(voltage, dtype=VOLTAGE_DTYPE)
                for channel, voltage in await channel_cursor.fetchall()
            }
            frames.append(
                {
                    "digitizer_id": digitizer_id,
                    "frame_number": frame_number,
                    "timestamp": (
                        datetime.fromisoformat(frame_timestamp) if frame_timestamp else None
                    ),
                    "sample_rate": sample_rate,
                    "channels": channels,
                }
            )
        return frames


class TraceFileFactory:
    """Creates trace files under one output directory."""

    def __init__(self, output_dir: str | Path, extension: str = "db"):
        self._output_dir = Path(output_dir)
        self._extension = extension

    @property
    def extension(self) -> str:
        return self._extension

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    async def create(self, name: str, digitizer_count: int) -> TraceFile:
        """Create (or reopen) ``<output_dir>/<name>``."""
        return await TraceFile.create(self._output_dir / name, digitizer_count)
