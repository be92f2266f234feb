from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


COCO17_NAMES = [
	"nose",
	"left_eye",
	"right_eye",
	"left_ear",
	"right_ear",
	"left_shoulder",
	"right_shoulder",
	"left_elbow",
	"right_elbow",
	"left_wrist",
	"right_wrist",
	"left_hip",
	"right_hip",
	"left_knee",
	"right_knee",
	"left_ankle",
	"right_ankle",
]


@dataclass(frozen=True)
class Keypoint:
	"""
	A single 2D keypoint in pixel coordinates.
	"""

	name: str
	x_px: float
	y_px: float
	score: float = 1.0  # confidence/visibility [0..1] best-effort


@dataclass(frozen=True)
class PoseFrame:
	"""
	Model-agnostic pose output for a single video frame (one subject).

	- Coordinates are in pixel space to keep downstream logic consistent.
	- `detected` is False when the estimator found no subject at all.
	- Keypoints keep the order the provider emitted them in; lookup by name
	  returns the first match.
	"""

	backend: str
	width: int
	height: int
	t_video: Optional[float] = None
	t_host: Optional[float] = None
	keypoints: Tuple[Keypoint, ...] = field(default_factory=tuple)
	detected: bool = True

	def get(self, name: str) -> Optional[Keypoint]:
		for kp in self.keypoints:
			if kp.name == name:
				return kp
		return None


@dataclass(frozen=True)
class MeasurementRecord:
	"""
	Pixel distances derived from one PoseFrame. A value is 0.0 when its
	keypoint pair was not both present.
	"""

	shoulder_width: float = 0.0
	hip_width: float = 0.0
	height: float = 0.0

	def to_dict(self) -> Dict[str, Any]:
		return {
			"shoulderWidth": self.shoulder_width,
			"hipWidth": self.hip_width,
			"height": self.height,
		}
