from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any, Dict, Optional, Tuple

from bodymeasure.video_backend import VideoBackend

logger = logging.getLogger(__name__)


class OpenCVBackend(VideoBackend):
	"""
	Webcam backend on top of cv2.VideoCapture.

	A daemon thread keeps grabbing frames so read_rgb() always returns the
	newest one instead of whatever sits in the driver buffer.
	"""

	def __init__(self, device_index: int = 0, size: Tuple[int, int] = (640, 480), label: str = "opencv") -> None:
		self._lock = threading.Lock()
		self._label = str(label or "opencv")
		self._device_index = int(device_index)
		self._size = (int(size[0]), int(size[1]))

		self._running = False
		self._last_error: Optional[str] = None
		self._latest_rgb = None
		self._latest_t_host: Optional[float] = None
		self._frames_captured = 0

		self._cap = None
		self._thread: Optional[threading.Thread] = None

	def name(self) -> str:
		return self._label

	def get_status(self) -> Dict[str, Any]:
		with self._lock:
			return {
				"label": self._label,
				"device_index": self._device_index,
				"running": bool(self._running),
				"has_frame": self._latest_rgb is not None,
				"t_last_frame": self._latest_t_host,
				"frames_captured": int(self._frames_captured),
				"size": [int(self._size[0]), int(self._size[1])],
				"error": self._last_error,
			}

	def _check_device_access(self) -> None:
		# V4L2 exposes webcams as /dev/videoN; OpenCV only reports "not opened".
		dev = f"/dev/video{self._device_index}"
		if os.path.exists(dev) and not os.access(dev, os.R_OK | os.W_OK):
			raise PermissionError(f"no read/write access to {dev}")

	def start(self) -> None:
		with self._lock:
			if self._running:
				return

		self._check_device_access()

		import cv2

		cap = cv2.VideoCapture(self._device_index)
		if not cap.isOpened():
			cap.release()
			with self._lock:
				self._last_error = f"camera device {self._device_index} could not be opened"
			raise RuntimeError(f"camera device {self._device_index} could not be opened")

		cap.set(cv2.CAP_PROP_FRAME_WIDTH, float(self._size[0]))
		cap.set(cv2.CAP_PROP_FRAME_HEIGHT, float(self._size[1]))

		with self._lock:
			self._cap = cap
			self._running = True
			self._last_error = None

		t = threading.Thread(target=self._run_loop, name=f"{self._label}-capture", daemon=True)
		self._thread = t
		t.start()
		logger.info("[CAMERA] opencv device %s started at %sx%s", self._device_index, self._size[0], self._size[1])

	def stop(self) -> None:
		with self._lock:
			self._running = False
		t = self._thread
		if t and t.is_alive():
			t.join(timeout=2.0)
		self._thread = None
		with self._lock:
			cap, self._cap = self._cap, None
			self._latest_rgb = None
			self._latest_t_host = None
		if cap is not None:
			cap.release()

	def read_rgb(self) -> Tuple[Any, Optional[float]]:
		with self._lock:
			if self._latest_rgb is None:
				return None, None
			return self._latest_rgb.copy(), self._latest_t_host

	def _run_loop(self) -> None:
		import cv2

		while True:
			with self._lock:
				if not self._running:
					return
				cap = self._cap
			if cap is None:
				return
			ok, bgr = cap.read()
			if not ok or bgr is None:
				with self._lock:
					self._last_error = "frame read failed"
				time.sleep(0.05)
				continue
			rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
			now = time.time()
			with self._lock:
				self._latest_rgb = rgb
				self._latest_t_host = now
				self._frames_captured += 1
				self._last_error = None
