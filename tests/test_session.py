import asyncio
import threading
import time

import pytest

from bodymeasure.outcome import Failure, FailureKind, Ok
from bodymeasure.session import MeasurementSession, SessionState, SessionStateError

from tests.conftest import EXAMPLE_POINTS, FakeProvider, FakeVideo, make_frame


def test_start_walks_camera_then_model(fake_video, fake_provider):
	session = MeasurementSession(fake_video, fake_provider)
	assert session.state == SessionState.IDLE
	out = asyncio.run(session.start())
	assert isinstance(out, Ok)
	assert session.state == SessionState.MODEL_READY
	assert fake_video.running and fake_provider.loaded


def test_camera_failure_halts_before_model(fake_provider):
	video = FakeVideo(start_error=PermissionError("denied"))
	session = MeasurementSession(video, fake_provider)
	out = asyncio.run(session.start())
	assert isinstance(out, Failure)
	assert out.kind == FailureKind.CAMERA_PERMISSION_DENIED
	assert session.state == SessionState.IDLE
	assert session.last_failure == out
	assert not fake_provider.loaded


def test_model_failure_leaves_camera_ready(fake_video):
	session = MeasurementSession(fake_video, FakeProvider(load_error=RuntimeError("no network")))
	out = asyncio.run(session.start())
	assert isinstance(out, Failure)
	assert out.kind == FailureKind.MODEL_LOAD_FAILED
	assert session.state == SessionState.CAMERA_READY


def test_load_model_before_camera_is_rejected(fake_video, fake_provider):
	session = MeasurementSession(fake_video, fake_provider)
	with pytest.raises(SessionStateError):
		asyncio.run(session.load_model())


def test_detect_before_ready_is_rejected(fake_video, fake_provider):
	session = MeasurementSession(fake_video, fake_provider)
	with pytest.raises(SessionStateError):
		asyncio.run(session.detect_once())


def test_run_polls_and_keeps_going_after_failure(fake_video):
	provider = FakeProvider(
		frames=[
			make_frame({}, detected=False),
			make_frame(EXAMPLE_POINTS),
		]
	)
	session = MeasurementSession(fake_video, provider)
	seen = []

	async def scenario():
		await session.start()
		await session.run(interval=0.0, on_outcome=seen.append, max_ticks=3)

	asyncio.run(scenario())
	assert len(seen) == 3
	assert isinstance(seen[0], Failure)
	assert isinstance(seen[1], Ok) and isinstance(seen[2], Ok)
	assert session.ticks == 3
	assert session.latest == seen[-1]
	assert session.last_failure == seen[0]
	assert session.state == SessionState.MODEL_READY
	assert not session.polling


def test_run_awaits_async_callback(fake_video, fake_provider):
	session = MeasurementSession(fake_video, fake_provider)
	seen = []

	async def on_outcome(out):
		await asyncio.sleep(0)
		seen.append(out)

	async def scenario():
		await session.start()
		await session.run(interval=0.0, on_outcome=on_outcome, max_ticks=2)

	asyncio.run(scenario())
	assert len(seen) == 2


def test_stop_polling_ends_run(fake_video, fake_provider):
	session = MeasurementSession(fake_video, fake_provider)

	def on_outcome(out):
		session.stop_polling()

	async def scenario():
		await session.start()
		await session.run(interval=10.0, on_outcome=on_outcome)

	asyncio.run(asyncio.wait_for(scenario(), timeout=5.0))
	assert session.ticks == 1


def test_stop_releases_camera_and_model(fake_video, fake_provider):
	session = MeasurementSession(fake_video, fake_provider)

	async def scenario():
		await session.start()
		await session.stop()

	asyncio.run(scenario())
	assert session.state == SessionState.IDLE
	assert fake_provider.closed
	assert fake_video.stop_calls == 1


def test_status_reports_latest(fake_video, fake_provider):
	session = MeasurementSession(fake_video, fake_provider)

	async def scenario():
		await session.start()
		await session.detect_once()

	asyncio.run(scenario())
	st = session.status()
	assert st["state"] == "model_ready"
	assert st["ticks"] == 1
	assert st["latest"] == {"shoulderWidth": 300.0, "hipWidth": 250.0, "height": 600.0}
	assert st["last_failure"] is None


class SlowProvider(FakeProvider):
	"""Blocks in infer_rgb and records overlapping calls and closes."""

	def __init__(self, delay: float) -> None:
		super().__init__()
		self.delay = delay
		self._guard = threading.Lock()
		self.active = 0
		self.max_active = 0
		self.closed_during_infer = False

	def infer_rgb(self, rgb, t_video=None):
		with self._guard:
			self.active += 1
			self.max_active = max(self.max_active, self.active)
		try:
			time.sleep(self.delay)
			return super().infer_rgb(rgb, t_video)
		finally:
			with self._guard:
				self.active -= 1

	def close(self) -> None:
		with self._guard:
			if self.active:
				self.closed_during_infer = True
		super().close()


def test_stop_waits_for_inflight_inference(fake_video):
	provider = SlowProvider(delay=0.3)
	session = MeasurementSession(fake_video, provider)

	async def scenario():
		await session.start()
		task = asyncio.create_task(session.run(interval=0.0))
		await asyncio.sleep(0.1)
		task.cancel()
		await asyncio.gather(task, return_exceptions=True)
		await session.stop()

	asyncio.run(scenario())
	assert provider.closed
	assert not provider.closed_during_infer
	assert session.state == SessionState.IDLE


def test_concurrent_detections_are_serialized(fake_video):
	provider = SlowProvider(delay=0.1)
	session = MeasurementSession(fake_video, provider)

	async def scenario():
		await session.start()
		return await asyncio.gather(session.detect_once(), session.detect_once(), session.detect_once())

	outs = asyncio.run(scenario())
	assert all(isinstance(o, Ok) for o in outs)
	assert provider.max_active == 1
	assert session.ticks == 3


def test_detect_while_polling_is_serialized(fake_video):
	provider = SlowProvider(delay=0.05)
	session = MeasurementSession(fake_video, provider)

	async def scenario():
		await session.start()
		task = asyncio.create_task(session.run(interval=0.0, max_ticks=4))
		await asyncio.sleep(0.02)
		await session.detect_once()
		await task

	asyncio.run(scenario())
	assert provider.max_active == 1
	assert session.ticks == 5


def test_concurrent_camera_start_opens_once(fake_provider):
	video = FakeVideo()
	session = MeasurementSession(video, fake_provider)

	async def scenario():
		return await asyncio.gather(session.start_camera(), session.start_camera())

	outs = asyncio.run(scenario())
	assert all(isinstance(o, Ok) for o in outs)
	assert video.start_calls == 1
	assert session.state == SessionState.CAMERA_READY
