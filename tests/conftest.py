import os

import pytest

from gaze_heatmap.acquisition import GazeSource
from gaze_heatmap.configs import AppSettings
from gaze_heatmap.models import GazeFrame, SurfaceGeometry, Viewport
from gaze_heatmap.sinks import GazeSink


class ListSource(GazeSource):
    """Feeds a fixed list of samples, then ends the stream."""

    def __init__(self, samples):
        super().__init__()
        self._samples = list(samples)

    async def _produce(self) -> None:
        for sample in self._samples:
            if self.is_stopping:
                return
            await self._output_queue.put(sample)


class RecordingSink(GazeSink):
    def __init__(self):
        self.frames: list[GazeFrame] = []
        self.started = False
        self.closed = False

    async def start(self) -> None:
        self.started = True

    async def send(self, frame: GazeFrame) -> None:
        self.frames.append(frame)

    async def close(self) -> None:
        self.closed = True


class FailingSink(RecordingSink):
    """Records frames and raises once more than `fail_after` have arrived."""

    def __init__(self, fail_after: int):
        super().__init__()
        self.fail_after = fail_after

    async def send(self, frame: GazeFrame) -> None:
        if len(self.frames) >= self.fail_after:
            raise RuntimeError("sink lost its connection")
        await super().send(frame)


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """No GAZE__ variables or .env file from the developer machine."""
    for key in list(os.environ):
        if key.upper().startswith("GAZE__"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings(clean_env):
    return AppSettings(
        viewport={"width_px": 800, "height_px": 600},
        surface={"left": 100, "top": 50, "width": 400, "height": 300},
        parquet={"output_dir": clean_env / "recordings"},
        dummy={"seed": 7},
    )


@pytest.fixture
def viewport():
    return Viewport(800, 600)


@pytest.fixture
def surface():
    return SurfaceGeometry(left=100, top=50, width=400, height=300)


@pytest.fixture
def full_screen():
    return SurfaceGeometry(left=0, top=0, width=800, height=600)


@pytest.fixture
def list_source():
    return ListSource


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    return FailingSink
