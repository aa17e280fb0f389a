from .base import GazeSink
from .parquet import ParquetSink
from .zmq import ZMQSink

__all__ = ["GazeSink", "ParquetSink", "ZMQSink"]
