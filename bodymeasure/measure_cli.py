"""
Headless measurement loop: open the camera, load the model and print one JSON
outcome per polling tick.

    python -m bodymeasure.measure_cli --interval 1.0 --count 10
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Optional

from bodymeasure.config import get_config, set_config_path
from bodymeasure.outcome import Failure, Outcome, to_payload
from bodymeasure.pose.base import get_pose_provider
from bodymeasure.pose.types import MeasurementRecord
from bodymeasure.session import MeasurementSession
from bodymeasure.video_backend import get_video_backend


def _print_outcome(out: Outcome[MeasurementRecord]) -> None:
	print(json.dumps(to_payload(out)), flush=True)


async def _run(backend: Optional[str], device: Optional[int], interval: Optional[float], count: Optional[int]) -> int:
	cfg = get_config()
	if device is not None:
		cfg = replace(cfg, camera=replace(cfg.camera, device_index=int(device)))
	video = get_video_backend(cfg, backend_override=backend)
	provider = get_pose_provider(cfg)
	session = MeasurementSession(video, provider, min_score=cfg.pose.min_keypoint_score)

	started = await session.start()
	if isinstance(started, Failure):
		print(json.dumps(started.to_dict()), flush=True)
		await session.stop()
		return 1
	try:
		await session.run(
			interval=float(interval) if interval is not None else cfg.detection.poll_interval_seconds,
			on_outcome=_print_outcome,
			max_ticks=count,
		)
	finally:
		await session.stop()
	return 0


def main() -> None:
	parser = argparse.ArgumentParser(description="Measure shoulder width, hip width and height (pixels) from a webcam.")
	parser.add_argument("--config", help="Path to config.json (defaults to the repo root).")
	parser.add_argument("--backend", choices=["opencv", "picamera2"], help="Camera backend (overrides config).")
	parser.add_argument("--device", type=int, help="OpenCV camera device index (overrides config).")
	parser.add_argument("--interval", type=float, help="Seconds between detections (default: config, 1.0).")
	parser.add_argument("--count", type=int, help="Stop after this many detections (default: run until Ctrl+C).")
	parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
	args = parser.parse_args()

	if args.config:
		set_config_path(args.config)

	# Configure logging
	if args.debug:
		logging.basicConfig(level=logging.DEBUG, format='%(levelname)s:%(name)s:%(message)s')
	else:
		level = getattr(logging, get_config().logging.level, logging.INFO)
		logging.basicConfig(level=level, format='%(levelname)s:%(name)s:%(message)s')

	try:
		rc = asyncio.run(_run(args.backend, args.device, args.interval, args.count))
	except KeyboardInterrupt:
		print("\nInterrupted by user.")
		rc = 0
	except Exception as e:
		logging.exception("Fatal error: %s", e)
		sys.exit(1)
	sys.exit(rc)


if __name__ == "__main__":
	main()
