import asyncio
import logging
import math
from pathlib import Path

import pyarrow.parquet as pq

from ..models import GazeSample
from .base import GazeSource

logger = logging.getLogger(__name__)


class ParquetReplaySource(GazeSource):
    """
    Replays the raw predictor output stored in a session log.

    Only the raw columns are read, so a replay goes through smoothing and
    mapping again and can be used to compare settings on the same recording.
    """

    _COLUMNS = ["timestamp_s", "raw_x", "raw_y", "confidence"]

    def __init__(self, path: Path, realtime: bool = False, batch_size: int = 4096, queue_size: int = 0):
        """
        Args:
            path: Parquet file written by `ParquetSink`.
            realtime: Sleep between samples according to their timestamps.
            batch_size: Rows decoded per batch.
        """
        super().__init__(queue_size=queue_size)
        if not path.exists():
            raise FileNotFoundError(f"Session log not found: {path}")
        self._path = path
        self._realtime = realtime
        self._batch_size = batch_size

    async def _produce(self) -> None:
        loop = asyncio.get_running_loop()
        parquet_file = await asyncio.to_thread(pq.ParquetFile, self._path)
        logger.info(f"Replaying {parquet_file.metadata.num_rows:,} samples from {self._path}")

        first_ts: float | None = None
        start_time = loop.time()
        count = 0

        try:
            for batch in parquet_file.iter_batches(batch_size=self._batch_size, columns=self._COLUMNS):
                rows = batch.to_pydict()
                for ts, x, y, confidence in zip(
                    rows["timestamp_s"], rows["raw_x"], rows["raw_y"], rows["confidence"]
                ):
                    if self._stop_event.is_set():
                        return

                    sample = GazeSample(
                        x=math.nan if x is None else x,
                        y=math.nan if y is None else y,
                        confidence=0.0 if confidence is None else confidence,
                        timestamp_s=ts,
                    )

                    if self._realtime and ts is not None:
                        if first_ts is None:
                            first_ts = ts
                        sleep_duration = start_time + (ts - first_ts) - loop.time()
                        if sleep_duration > 0:
                            await asyncio.sleep(sleep_duration)

                    await self._output_queue.put(sample)
                    count += 1

                # Let the consumer run between batches.
                await asyncio.sleep(0)
        finally:
            logger.info(f"Replay finished after {count} samples.")
