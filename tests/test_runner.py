import asyncio
import math

import pyarrow.parquet as pq
import pytest

from gaze_heatmap.acquisition import DummySource, GazeSource
from gaze_heatmap.core import GazeRunner, GazeSession, StaticSurface
from gaze_heatmap.models import GazeSample, RejectReason, SurfaceGeometry
from gaze_heatmap.sinks import ParquetSink


class MovingSurface:
    """Shifts right by one pixel every time it is queried."""

    def __init__(self):
        self.calls = 0

    def geometry(self) -> SurfaceGeometry:
        self.calls += 1
        return SurfaceGeometry(left=100 + self.calls, top=50, width=400, height=300)


def test_runner_drains_source_into_session_and_sinks(settings, viewport, surface, list_source, recording_sink):
    samples = [GazeSample(300.0 + i, 200.0, 0.9, i / 60) for i in range(10)]
    samples.append(GazeSample(math.nan, 200.0, 0.9, 0.2))
    session = GazeSession(settings, viewport)

    async def main():
        runner = GazeRunner(list_source(samples), session, StaticSurface(surface), [recording_sink])
        await runner.start()
        assert runner.is_running
        assert session.is_tracking
        await runner.wait()
        await runner.stop()
        assert not runner.is_running

    asyncio.run(main())

    assert recording_sink.started
    assert recording_sink.closed
    assert len(recording_sink.frames) == 11
    assert sum(f.accepted for f in recording_sink.frames) == 10
    assert recording_sink.frames[-1].result.reason is RejectReason.NON_FINITE
    assert not session.is_tracking
    assert len(session.heatmap_points) == 10


def test_surface_is_queried_for_every_sample(settings, viewport, list_source):
    samples = [GazeSample(300.0, 200.0, 0.9, i / 60) for i in range(5)]
    session = GazeSession(settings, viewport)
    moving = MovingSurface()

    async def main():
        runner = GazeRunner(list_source(samples), session, moving, [])
        await runner.start()
        await runner.wait()
        await runner.stop()

    asyncio.run(main())

    assert moving.calls == 5
    # The first sample was mapped against left=101.
    assert session.heatmap_points[0].x == 199.0


def test_runner_with_simulated_predictor(settings, viewport, surface, recording_sink):
    session = GazeSession(settings, viewport)

    async def main():
        source = DummySource(surface, viewport, settings.dummy, max_samples=50, realtime=False)
        runner = GazeRunner(source, session, StaticSurface(surface), [recording_sink])
        await runner.start()
        await runner.wait()
        await runner.stop()

    asyncio.run(main())

    assert session.stats.total_samples == 50
    assert len(recording_sink.frames) == 50
    assert session.stats.accepted_samples > 0
    for point in session.heatmap_points:
        assert 0.0 <= point.x <= surface.width
        assert 0.0 <= point.y <= surface.height


def test_stop_ends_an_endless_source(settings, viewport, surface):
    session = GazeSession(settings, viewport)

    async def main():
        source = DummySource(surface, viewport, settings.dummy, realtime=False)
        runner = GazeRunner(source, session, StaticSurface(surface), [])
        await runner.start()
        await asyncio.sleep(0.05)
        await asyncio.wait_for(runner.stop(), timeout=5)

    asyncio.run(main())

    assert session.stats.total_samples > 0
    assert not session.is_tracking


def test_failing_sink_still_shuts_the_run_down(settings, viewport, surface, tmp_path,
                                                list_source, recording_sink, failing_sink):
    samples = [GazeSample(300.0, 200.0, 0.9, i / 60) for i in range(8)]
    session = GazeSession(settings, viewport)
    failing = failing_sink(fail_after=3)

    async def main():
        log = ParquetSink(tmp_path, drop_when_full=False, max_buffer_size=2, queue_size=10)
        runner = GazeRunner(list_source(samples), session, StaticSurface(surface), [log, recording_sink, failing])
        await runner.start()
        with pytest.raises(RuntimeError):
            await runner.wait()
        with pytest.raises(RuntimeError):
            await runner.stop()
        assert not runner.is_running
        return log

    log = asyncio.run(main())

    assert not session.is_tracking
    assert recording_sink.closed
    assert failing.closed
    # The writer was closed, so the file has a footer and reads back.
    assert pq.read_table(log.output_path).num_rows == len(recording_sink.frames)
    assert len(recording_sink.frames) >= 3


def test_source_error_surfaces_after_cleanup(settings, viewport, surface, recording_sink):
    class BrokenSource(GazeSource):
        async def _produce(self) -> None:
            await self._output_queue.put(GazeSample(300.0, 200.0, 0.9, 0.0))
            raise OSError("camera unplugged")

    session = GazeSession(settings, viewport)

    async def main():
        runner = GazeRunner(BrokenSource(), session, StaticSurface(surface), [recording_sink])
        await runner.start()
        await runner.wait()
        with pytest.raises(OSError):
            await runner.stop()

    asyncio.run(main())

    assert len(recording_sink.frames) == 1
    assert recording_sink.closed
    assert not session.is_tracking
