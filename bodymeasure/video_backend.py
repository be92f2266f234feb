from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Any, AsyncIterator, Dict, Optional, Tuple

from bodymeasure.config import AppConfig, get_config


class VideoBackend(ABC):
	"""
	Camera adapter. `start()` opens the device and raises on failure
	(PermissionError when access is denied); frames are then served from a
	background capture loop.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def start(self) -> None: ...

	@abstractmethod
	def stop(self) -> None: ...

	@abstractmethod
	def get_status(self) -> Dict[str, Any]: ...

	@abstractmethod
	def read_rgb(self) -> Tuple[Any, Optional[float]]:
		"""
		Latest RGB frame (H,W,3 uint8) and its host timestamp, or (None, None)
		if no frame has been captured yet. Thread-safe.
		"""
		...

	def get_latest_jpeg(self) -> Tuple[Optional[bytes], Optional[float]]:
		rgb, t = self.read_rgb()
		if rgb is None:
			return None, None
		return encode_jpeg(rgb), t

	async def mjpeg_stream(self, fps: float) -> AsyncIterator[bytes]:
		async for chunk in mjpeg_from_latest(self.get_latest_jpeg, fps):
			yield chunk

	async def snapshot_jpeg(self) -> Optional[bytes]:
		loop = asyncio.get_running_loop()
		jpeg, _t = await loop.run_in_executor(None, self.get_latest_jpeg)
		return jpeg


def encode_jpeg(rgb, quality: int = 80) -> bytes:
	from PIL import Image

	buf = BytesIO()
	Image.fromarray(rgb).save(buf, format="JPEG", quality=int(quality), optimize=True)
	return buf.getvalue()


def get_video_backend(cfg: Optional[AppConfig] = None, *, backend_override: Optional[str] = None) -> VideoBackend:
	cfg = cfg or get_config()
	backend = (backend_override or cfg.camera.backend or "opencv").strip().lower()

	if backend in ("picamera2", "pc2"):
		from bodymeasure.video_backends.picamera2_backend import Picamera2Backend

		return Picamera2Backend(
			camera_index=int(cfg.camera.picamera2_index),
			size=(int(cfg.camera.width), int(cfg.camera.height)),
		)

	# Default (and unknown names): a plain webcam through OpenCV.
	from bodymeasure.video_backends.opencv_backend import OpenCVBackend

	# NOTE: do not use `or 1` here; device index 0 is valid and would be overwritten.
	return OpenCVBackend(
		device_index=int(cfg.camera.device_index),
		size=(int(cfg.camera.width), int(cfg.camera.height)),
	)


async def mjpeg_from_latest(get_latest_jpeg_fn, fps: float) -> AsyncIterator[bytes]:
	"""
	Reusable MJPEG generator for backends that expose get_latest_jpeg().
	Yields full multipart chunks including boundary and headers.
	"""
	boundary = b"frame"
	last_t = None
	last_sent_mono = 0.0
	try:
		max_fps = float(fps)
	except (TypeError, ValueError):
		max_fps = 15.0
	if not (max_fps > 0.0):
		max_fps = 15.0
	min_interval = 1.0 / max_fps
	loop = asyncio.get_running_loop()

	while True:
		jpeg, t = await loop.run_in_executor(None, get_latest_jpeg_fn)
		if jpeg is None or t is None:
			await asyncio.sleep(0.05)
			continue
		if last_t is not None and t == last_t:
			await asyncio.sleep(0.01)
			continue
		now_mono = time.monotonic()
		elapsed = now_mono - last_sent_mono
		if elapsed < min_interval:
			await asyncio.sleep(min_interval - elapsed)
			continue
		last_t = t
		last_sent_mono = time.monotonic()
		yield b"--" + boundary + b"\r\n"
		yield b"Content-Type: image/jpeg\r\n"
		yield b"Content-Length: " + str(len(jpeg)).encode("ascii") + b"\r\n\r\n"
		yield jpeg + b"\r\n"
