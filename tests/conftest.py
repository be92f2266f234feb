from typing import Any, Dict, List, Optional, Tuple

import pytest

from bodymeasure.pose.base import PoseProvider
from bodymeasure.pose.types import Keypoint, PoseFrame
from bodymeasure.video_backend import VideoBackend


def make_frame(points: Dict[str, Tuple[float, float]], detected: bool = True, score: float = 1.0) -> PoseFrame:
	return PoseFrame(
		backend="test",
		width=640,
		height=480,
		detected=detected,
		keypoints=tuple(Keypoint(name=n, x_px=x, y_px=y, score=score) for n, (x, y) in points.items()),
	)


EXAMPLE_POINTS = {
	"left_shoulder": (0.0, 0.0),
	"right_shoulder": (300.0, 0.0),
	"left_hip": (50.0, 200.0),
	"right_hip": (300.0, 200.0),
	"nose": (150.0, 0.0),
	"left_ankle": (150.0, 600.0),
}


class FakeVideo(VideoBackend):
	def __init__(self, start_error: Optional[BaseException] = None, frame: Any = "rgb") -> None:
		self.start_error = start_error
		self.frame = frame
		self.running = False
		self.start_calls = 0
		self.stop_calls = 0

	def name(self) -> str:
		return "fake_video"

	def start(self) -> None:
		self.start_calls += 1
		if self.start_error is not None:
			raise self.start_error
		self.running = True

	def stop(self) -> None:
		self.stop_calls += 1
		self.running = False

	def get_status(self) -> Dict[str, Any]:
		return {"running": self.running, "has_frame": self.frame is not None}

	def read_rgb(self):
		if not self.running or self.frame is None:
			return None, None
		return self.frame, 1.0


class FakeProvider(PoseProvider):
	def __init__(self, frames: Optional[List[PoseFrame]] = None, load_error: Optional[BaseException] = None, infer_error: Optional[BaseException] = None) -> None:
		self.frames = list(frames or [make_frame(EXAMPLE_POINTS)])
		self.load_error = load_error
		self.infer_error = infer_error
		self.loaded = False
		self.closed = False
		self.seen: List[Any] = []

	def name(self) -> str:
		return "fake_pose"

	def load(self) -> None:
		if self.load_error is not None:
			raise self.load_error
		self.loaded = True

	def infer_rgb(self, rgb, t_video=None) -> PoseFrame:
		if self.infer_error is not None:
			raise self.infer_error
		self.seen.append(rgb)
		# Repeat the last frame once the script runs out.
		if len(self.frames) > 1:
			return self.frames.pop(0)
		return self.frames[0]

	def close(self) -> None:
		self.closed = True


@pytest.fixture
def fake_video() -> FakeVideo:
	return FakeVideo()


@pytest.fixture
def fake_provider() -> FakeProvider:
	return FakeProvider()
