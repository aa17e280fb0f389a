import logging
import math
import struct
from typing import Final

import zmq
import zmq.asyncio

from .base import GazeSink
from ..models import GazeFrame

logger = logging.getLogger(__name__)

class ZMQSink(GazeSink):
    """
    Live point broadcast using ZMQ PUB/SUB, for renderers running in another
    process. Every processed frame is published. A rejected frame is a "no
    update" message: `accepted` is False, the coordinates are NaN, and a
    subscriber keeps drawing the last accepted point.

    Wire Format (17 bytes + 4 byte topic):
    - Topic: 'gaze' (4 bytes)
    - Timestamp s: float64 (8 bytes), NaN when the predictor gave none
    - Surface X: float32 (4 bytes), NaN when not accepted
    - Surface Y: float32 (4 bytes), NaN when not accepted
    - Accepted: bool (1 byte)
    """

    # ! = Network (Big Endian)
    # d = float64 (timestamp)
    # f = float32 (x)
    # f = float32 (y)
    # ? = bool  (accepted)
    _PACKER: Final[struct.Struct] = struct.Struct("!dff?")
    _TOPIC: Final[bytes] = b"gaze"

    def __init__(self, host: str = "tcp://*:5556"):
        """
        Args:
            host: The ZMQ binding address. Default binds to all interfaces on port 5556.
        """
        self.host = host

        # Async ZMQ setup
        self._ctx = zmq.asyncio.Context()
        self._sock = self._ctx.socket(zmq.PUB)

        # Only the newest points matter to a renderer; cap the backlog at ~2s at 60Hz.
        self._sock.setsockopt(zmq.SNDHWM, 120)

    @classmethod
    def pack(cls, frame: GazeFrame) -> bytes:
        point = frame.point
        ts = frame.sample.timestamp_s
        return cls._TOPIC + cls._PACKER.pack(
            math.nan if ts is None else ts,
            point.x if point else math.nan,
            point.y if point else math.nan,
            frame.accepted,
        )

    @classmethod
    def unpack(cls, message: bytes) -> tuple[float, float, float, bool]:
        if not message.startswith(cls._TOPIC):
            raise ValueError("Not a gaze message.")
        return cls._PACKER.unpack(message[len(cls._TOPIC):])

    async def start(self) -> None:
        """Bind the publisher socket."""
        try:
            self._sock.bind(self.host)
            logger.info(f"ZMQSink bound to {self.host}")
        except Exception as e:
            logger.error(f"Failed to bind ZMQSink to {self.host}: {e}")
            raise e

    async def send(self, frame: GazeFrame) -> None:
        """
        Publishes the frame as a live point update, or as a no-update
        message when it was rejected. Non-blocking, ZMQ hands off to its
        internal buffer.
        """
        try:
            await self._sock.send(self.pack(frame))
        except Exception as e:
            # A broken subscriber link must never stall the processing loop.
            logger.error(f"ZMQ broadcast failed: {e}")

    async def close(self) -> None:
        """Shut down the ZMQ context."""
        logger.info("Closing ZMQSink...")
        # Close immediately, don't wait for unsent messages
        self._sock.close(linger=0)
        self._ctx.term()
