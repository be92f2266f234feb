"""
Caller-level measurement session.

Drives Idle -> CameraReady -> ModelReady -> Detecting. A failure at any step
halts progression and is reported; nothing is retried automatically. The
polling loop keeps going after a failed tick, so the next tick is the retry.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from bodymeasure.body_measurement import acquire_video, detect, load_model
from bodymeasure.outcome import Failure, Ok, Outcome, is_failure, to_payload
from bodymeasure.pose.base import PoseProvider
from bodymeasure.pose.types import MeasurementRecord
from bodymeasure.video_backend import VideoBackend

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[Outcome[MeasurementRecord]], Optional[Awaitable[Any]]]


class SessionState(str, Enum):
	IDLE = "idle"
	CAMERA_READY = "camera_ready"
	MODEL_READY = "model_ready"
	DETECTING = "detecting"


class SessionStateError(RuntimeError):
	"""Raised when an operation is called in the wrong session state."""


class MeasurementSession:
	def __init__(self, video: VideoBackend, provider: PoseProvider, min_score: float = 0.0) -> None:
		self.video = video
		self.provider = provider
		self.min_score = float(min_score)
		self.state = SessionState.IDLE
		self.latest: Optional[Outcome[MeasurementRecord]] = None
		self.last_failure: Optional[Failure] = None
		self.ticks = 0
		self._polling = False
		# Serializes state transitions, inference and shutdown; the pose model is
		# not thread-safe and must not be closed while a frame is in flight.
		self._lock = asyncio.Lock()

	async def start_camera(self) -> Outcome[VideoBackend]:
		async with self._lock:
			if self.state != SessionState.IDLE:
				return Ok(self.video)
			out = await acquire_video(self.video)
			if is_failure(out):
				self.last_failure = out
				return out
			self.state = SessionState.CAMERA_READY
			return out

	async def load_model(self) -> Outcome[PoseProvider]:
		async with self._lock:
			if self.state == SessionState.IDLE:
				raise SessionStateError("camera must be started before loading the model")
			if self.state in (SessionState.MODEL_READY, SessionState.DETECTING):
				return Ok(self.provider)
			out = await load_model(self.provider)
			if is_failure(out):
				self.last_failure = out
				return out
			self.state = SessionState.MODEL_READY
			return out

	async def start(self) -> Outcome[Any]:
		"""
		Camera then model. Returns the first Failure, or Ok(self).
		"""
		cam = await self.start_camera()
		if is_failure(cam):
			return cam
		model = await self.load_model()
		if is_failure(model):
			return model
		return Ok(self)

	async def _detect_locked(self) -> Outcome[MeasurementRecord]:
		async with self._lock:
			if self.state not in (SessionState.MODEL_READY, SessionState.DETECTING):
				raise SessionStateError(f"cannot detect in state {self.state.value!r}")
			out = await detect(self.video, self.provider, min_score=self.min_score)
			self.latest = out
			self.ticks += 1
			if is_failure(out):
				self.last_failure = out
			return out

	async def detect_once(self) -> Outcome[MeasurementRecord]:
		"""
		One detection. Cancelling the caller does not cancel the inference
		thread, so the locked part runs shielded and keeps the lock until the
		frame is done.
		"""
		return await asyncio.shield(self._detect_locked())

	async def run(self, interval: float, on_outcome: Optional[OutcomeCallback] = None, max_ticks: Optional[int] = None) -> None:
		"""
		Poll detect_once() every `interval` seconds until stop(), cancellation or
		`max_ticks` ticks.
		"""
		if self.state not in (SessionState.MODEL_READY, SessionState.DETECTING):
			raise SessionStateError(f"cannot start polling in state {self.state.value!r}")
		self.state = SessionState.DETECTING
		self._polling = True
		done = 0
		try:
			while self._polling:
				out = await self.detect_once()
				if is_failure(out):
					logger.info("[SESSION] tick %s failed: %s", self.ticks, out.message)
				if on_outcome is not None:
					res = on_outcome(out)
					if asyncio.iscoroutine(res):
						await res
				done += 1
				if not self._polling or (max_ticks is not None and done >= max_ticks):
					break
				await asyncio.sleep(max(0.0, float(interval)))
		finally:
			self._polling = False
			if self.state == SessionState.DETECTING:
				self.state = SessionState.MODEL_READY

	@property
	def polling(self) -> bool:
		return self._polling

	def stop_polling(self) -> None:
		self._polling = False

	async def stop(self) -> None:
		"""
		Stop polling and release the model and the camera. Waits for an
		in-flight detection to finish first.
		"""
		self._polling = False
		loop = asyncio.get_running_loop()
		async with self._lock:
			try:
				self.provider.close()
			finally:
				if self.state != SessionState.IDLE:
					await loop.run_in_executor(None, self.video.stop)
				self.state = SessionState.IDLE

	def status(self) -> dict[str, Any]:
		return {
			"state": self.state.value,
			"polling": self._polling,
			"ticks": int(self.ticks),
			"latest": to_payload(self.latest) if self.latest is not None else None,
			"last_failure": self.last_failure.to_dict() if self.last_failure else None,
			"camera": self.video.name(),
			"model": self.provider.name(),
		}
