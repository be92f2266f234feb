from __future__ import annotations

import logging
import sys
import threading
import time
from typing import Any, Dict, Optional, Tuple

from bodymeasure.video_backend import VideoBackend

logger = logging.getLogger(__name__)


class Picamera2Backend(VideoBackend):
	"""
	Picamera2/libcamera backend for Raspberry Pi camera modules.

	Notes:
	- `python3-picamera2` is a system package on Raspberry Pi OS (apt), so it is
	  not listed in the pip dependencies.
	- Frames are captured as RGB888 at the configured size.
	"""

	def __init__(self, camera_index: Optional[int] = None, size: Tuple[int, int] = (640, 480), label: str = "picamera2") -> None:
		self._lock = threading.Lock()
		self._label = str(label or "picamera2")
		self._camera_index: Optional[int] = int(camera_index) if camera_index is not None else None
		self._size = (int(size[0]), int(size[1]))

		self._running = False
		self._last_error: Optional[str] = None
		self._latest_rgb = None
		self._latest_t_host: Optional[float] = None

		# Picamera2 objects (lazy-imported)
		self._picam2 = None
		self._thread: Optional[threading.Thread] = None

	def name(self) -> str:
		return self._label

	def get_status(self) -> Dict[str, Any]:
		with self._lock:
			return {
				"label": self._label,
				"camera_index": self._camera_index,
				"running": bool(self._running),
				"has_frame": self._latest_rgb is not None,
				"t_last_frame": self._latest_t_host,
				"size": [int(self._size[0]), int(self._size[1])],
				"error": self._last_error,
			}

	def start(self) -> None:
		with self._lock:
			if self._running:
				return

		try:
			from picamera2 import Picamera2  # type: ignore
		except ImportError as e:
			with self._lock:
				self._last_error = f"Picamera2 import failed: {e!r}. Python={sys.executable!r}."
			raise RuntimeError(
				"Picamera2 is not available. On Raspberry Pi OS install `python3-picamera2` "
				"and create the venv with `--system-site-packages`."
			) from e

		# Helpful diagnostics: show camera count if index selection fails.
		try:
			infos = Picamera2.global_camera_info()  # type: ignore[attr-defined]
		except Exception:
			infos = None
		if isinstance(infos, list) and len(infos) == 0:
			raise RuntimeError("no cameras detected (global_camera_info empty)")
		if self._camera_index is not None and isinstance(infos, list) and int(self._camera_index) >= len(infos):
			raise RuntimeError(f"camera_index={int(self._camera_index)} out of range (found {len(infos)} camera(s))")

		if self._camera_index is None:
			picam2 = Picamera2()
		else:
			# Picamera2 uses camera_num to select camera
			picam2 = Picamera2(camera_num=int(self._camera_index))

		try:
			cfg = picam2.create_video_configuration(main={"size": self._size, "format": "RGB888"})
			picam2.configure(cfg)
			picam2.start()
		except Exception:
			picam2.close()
			raise

		with self._lock:
			self._picam2 = picam2
			self._running = True
			self._last_error = None

		t = threading.Thread(target=self._run_loop, name=f"{self._label}-picamera2", daemon=True)
		self._thread = t
		t.start()
		logger.info("[CAMERA] picamera2 camera %s started at %sx%s", self._camera_index, self._size[0], self._size[1])

	def stop(self) -> None:
		with self._lock:
			self._running = False
		t = self._thread
		if t and t.is_alive():
			t.join(timeout=2.0)
		self._thread = None
		with self._lock:
			picam2, self._picam2 = self._picam2, None
			self._latest_rgb = None
			self._latest_t_host = None
		if picam2 is None:
			return
		try:
			picam2.stop()
		finally:
			picam2.close()

	def read_rgb(self) -> Tuple[Any, Optional[float]]:
		with self._lock:
			if self._latest_rgb is None:
				return None, None
			return self._latest_rgb.copy(), self._latest_t_host

	def _run_loop(self) -> None:
		while True:
			with self._lock:
				if not self._running:
					return
				picam2 = self._picam2
			if picam2 is None:
				return
			try:
				# libcamera's "RGB888" is BGR byte order; flip to RGB.
				arr = picam2.capture_array("main")[:, :, ::-1]
			except Exception as e:
				with self._lock:
					self._last_error = f"capture failed: {e!r}"
				time.sleep(0.05)
				continue
			now = time.time()
			with self._lock:
				self._latest_rgb = arr
				self._latest_t_host = now
				self._last_error = None
