from .logging import ThrottledLogger
from .types import EndToken, _END

__all__ = ["ThrottledLogger", "EndToken", "_END"]
