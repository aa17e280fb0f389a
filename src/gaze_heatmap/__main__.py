import sys
import asyncio
import argparse
import logging
from pathlib import Path

from pydantic import ValidationError

from gaze_heatmap import __version__
from gaze_heatmap.configs.app import AppSettings
from gaze_heatmap.core import SessionManager
from gaze_heatmap.factories import resolve_viewport

logger = logging.getLogger("main")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gaze-heatmap",
        description="Stabilize a gaze stream and render an attention heatmap."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--dummy",
        action="store_true",
        help="Use the simulated gaze predictor (default)."
    )
    source.add_argument(
        "--replay",
        type=Path,
        metavar="PARQUET",
        help="Replay the raw samples of a recorded session log."
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=10.0,
        help="Seconds to track with the simulated predictor (default: 10)."
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Pace samples on the wall clock instead of processing them as fast as possible."
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("heatmap.png"),
        help="Where to write the heatmap PNG."
    )
    parser.add_argument(
        "--stimulus",
        type=Path,
        help="Image the viewer looked at; the heatmap is composited over it."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


async def run(settings: AppSettings, args: argparse.Namespace) -> int:
    viewport = resolve_viewport(settings)
    manager = SessionManager(settings, viewport)

    max_samples = None
    if args.replay is None:
        max_samples = max(1, int(args.duration * settings.dummy.frequency_hz))

    if not await manager.start_tracking(
        replay_path=args.replay,
        max_samples=max_samples,
        realtime=args.realtime,
    ):
        return 1

    try:
        await manager.wait_for_source()
    finally:
        await manager.stop_tracking()

    logger.info(manager.session.stats.summary())
    manager.export_heatmap(args.output, stimulus=args.stimulus)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)

    # 1. Load Configuration
    try:
        settings = AppSettings()
    except ValidationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1

    # 2. Setup Logging
    logging.basicConfig(
        level=settings.logging.level.upper(),
        format=settings.logging.format,
        stream=sys.stdout
    )
    logger.info(f"Starting Gaze Heatmap v{__version__}")
    if args.replay is None:
        logger.warning("Using the SIMULATED gaze predictor.")

    # 3. Run the session
    try:
        return asyncio.run(run(settings, args))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return 130
    except Exception:
        logger.exception("Fatal Application Error")
        return 1
    finally:
        logger.info("Shutdown complete.")


if __name__ == "__main__":
    sys.exit(main())
