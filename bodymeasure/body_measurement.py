"""
Public entry points: acquire the camera, load the pose model, measure a frame.

Each call converts failures at its own boundary into a `Failure` outcome and
never raises. Blocking device/model work runs in the default executor so the
event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import logging

from bodymeasure.outcome import Failure, FailureKind, Ok, Outcome
from bodymeasure.pose.base import PoseProvider
from bodymeasure.pose.pose_metrics import measure_pose
from bodymeasure.pose.types import MeasurementRecord
from bodymeasure.video_backend import VideoBackend

logger = logging.getLogger(__name__)


async def acquire_video(video: VideoBackend) -> Outcome[VideoBackend]:
	loop = asyncio.get_running_loop()
	try:
		await loop.run_in_executor(None, video.start)
	except PermissionError as e:
		logger.warning("[CAMERA] %s: permission denied: %s", video.name(), e)
		return Failure.of(FailureKind.CAMERA_PERMISSION_DENIED)
	except Exception as e:
		logger.warning("[CAMERA] %s: start failed: %r", video.name(), e)
		return Failure.of(FailureKind.CAMERA_UNAVAILABLE)
	return Ok(video)


async def load_model(provider: PoseProvider) -> Outcome[PoseProvider]:
	loop = asyncio.get_running_loop()
	try:
		await loop.run_in_executor(None, provider.load)
	except Exception as e:
		logger.warning("[POSE] %s: load failed: %r", provider.name(), e)
		return Failure.of(FailureKind.MODEL_LOAD_FAILED)
	return Ok(provider)


async def detect(video: VideoBackend, model: PoseProvider, min_score: float = 0.0) -> Outcome[MeasurementRecord]:
	"""
	Grab the latest frame, run the pose model on it and measure the result.
	"""
	loop = asyncio.get_running_loop()
	try:
		rgb, _t_host = await loop.run_in_executor(None, video.read_rgb)
		if rgb is None:
			logger.warning("[POSE] %s: no frame available yet", video.name())
			return Failure.of(FailureKind.DETECTION_ERROR)
		frame = await loop.run_in_executor(None, model.infer_rgb, rgb)
	except Exception as e:
		logger.warning("[POSE] %s: inference failed: %r", model.name(), e)
		return Failure.of(FailureKind.DETECTION_ERROR)
	return measure_pose(frame, min_score=min_score)
