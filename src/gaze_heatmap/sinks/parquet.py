import asyncio
import logging
import pyarrow as pa
import pyarrow.parquet as pq
from datetime import datetime, timezone
from pathlib import Path
from typing import Final, Optional

from .base import GazeSink
from ..models import GazeFrame
from ..utils.logging import ThrottledLogger
from ..utils.types import EndToken, _END

logger = logging.getLogger(__name__)

class ParquetSink(GazeSink):
    """
    Session log of every processed frame.

    Raw predictor output is kept next to the smoothed and stabilized values
    so a recording can be replayed through different settings. Flushes to
    disk based on buffer size.
    """
    _SCHEMA: Final[pa.Schema] = pa.schema([
        # Predictor timestamp
        ("timestamp_s", pa.float64()),

        # Raw predictor output, full precision so a replay reproduces the run exactly
        ("raw_x", pa.float64()),
        ("raw_y", pa.float64()),
        ("confidence", pa.float64()),

        # Smoothed screen coordinates (null when gated before smoothing)
        ("smooth_x", pa.float64()),
        ("smooth_y", pa.float64()),

        # Stabilized surface-local point (null when rejected)
        ("surface_x", pa.float64()),
        ("surface_y", pa.float64()),

        ("accepted", pa.bool_()),
        ("reject_reason", pa.string()),
    ])

    def __init__(
        self,
        output_dir: Path,
        drop_when_full: bool,
        max_buffer_size: int,
        queue_size: int,
    ) -> None:
        """
        Args:
            output_dir: Created if missing. One file per tracking run.
            drop_when_full: Drop frames instead of blocking the runner when the
                            writer falls behind.
            max_buffer_size: Frames per row group written to disk.
            queue_size: Frames that may wait for the writer.
        """
        self.max_buffer_size = max_buffer_size
        self.drop_when_full = drop_when_full

        output_dir.mkdir(parents=True, exist_ok=True)
        started = datetime.now(timezone.utc)
        self.output_path = output_dir / f"gaze_session_{started:%Y%m%d_%H%M%S_%f}.parquet"

        self._queue: asyncio.Queue[GazeFrame | EndToken] = asyncio.Queue(maxsize=queue_size)
        self._worker_task: Optional[asyncio.Task] = None
        self._writer: Optional[pq.ParquetWriter] = None

        self._total_rows = 0
        self._frames_dropped = 0
        self._drop_logger = ThrottledLogger(logger, interval_sec=1)

        logger.info(f"Session log: {self.output_path}")

    @property
    def total_rows(self) -> int:
        return self._total_rows

    @property
    def frames_dropped(self) -> int:
        return self._frames_dropped

    async def send(self, frame: GazeFrame) -> None:
        """Queue a frame for the writer. Blocks or drops when the queue is full."""
        if not self.drop_when_full:
            await self._queue.put(frame)
            return

        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            self._frames_dropped += 1
            self._drop_logger.warning("Session log queue is full, dropping frame.")

    def _take_ready(self, pending: list[GazeFrame]) -> bool:
        """
        Move already queued frames into `pending` without waiting, up to the
        buffer size. Returns False once the end marker was taken.
        """
        while len(pending) < self.max_buffer_size:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return True
            if item is _END:
                return False
            pending.append(item)
        return True

    async def _worker(self) -> None:
        pending: list[GazeFrame] = []
        open_stream = True

        while open_stream:
            item = await self._queue.get()
            if item is _END:
                break
            pending.append(item)
            open_stream = self._take_ready(pending)

            if len(pending) >= self.max_buffer_size:
                await self._flush(pending)
                pending = []

        await self._flush(pending)

    async def _flush(self, batch: list[GazeFrame]) -> None:
        """Arrow conversion and file IO run in a worker thread."""
        if not batch:
            return

        try:
            self._total_rows += await asyncio.to_thread(self._write_sync, batch)
        except Exception as e:
            logger.error(f"Writing {len(batch)} frames to {self.output_path} failed: {e}")
            self._frames_dropped += len(batch)

    @classmethod
    def to_table(cls, batch: list[GazeFrame]) -> pa.Table:
        columns: dict[str, list] = {name: [] for name in cls._SCHEMA.names}

        for frame in batch:
            sample = frame.sample
            point = frame.point
            columns["timestamp_s"].append(sample.timestamp_s)
            columns["raw_x"].append(sample.x)
            columns["raw_y"].append(sample.y)
            columns["confidence"].append(sample.confidence)
            columns["smooth_x"].append(frame.smoothed_x)
            columns["smooth_y"].append(frame.smoothed_y)
            columns["surface_x"].append(point.x if point else None)
            columns["surface_y"].append(point.y if point else None)
            columns["accepted"].append(frame.accepted)
            columns["reject_reason"].append(frame.result.reason.value if frame.result.reason else None)

        return pa.Table.from_pydict(columns, schema=cls._SCHEMA)

    def _write_sync(self, batch: list[GazeFrame]) -> int:
        """Synchronous Arrow conversion and Parquet write."""
        table = self.to_table(batch)

        if self._writer is None:
            self._writer = pq.ParquetWriter(
                self.output_path,
                schema=self._SCHEMA,
                compression="zstd",
            )

        self._writer.write_table(table)
        return len(batch)

    async def start(self) -> None:
        if self._worker_task is None:
            self._worker_task = asyncio.create_task(self._worker())

    async def close(self) -> None:
        if self._worker_task:
            await self._queue.put(_END)
            await self._worker_task
            self._worker_task = None

        if self._writer:
            await asyncio.to_thread(self._writer.close)
            self._writer = None
            logger.info(f"Session log closed: {self._total_rows:,} rows written, {self._frames_dropped:,} frames dropped.")
