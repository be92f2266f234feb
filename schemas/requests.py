"""Pydantic request body models for the measurement endpoints."""
import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from bodymeasure.pose.types import Keypoint, PoseFrame

# Far beyond any sensor; keeps distances finite.
MAX_COORDINATE_PX = 1e6

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")


def normalize_part_name(name: str) -> str:
	"""PoseNet-style `leftShoulder` -> `left_shoulder`; snake_case passes through."""
	return _CAMEL_RE.sub(r"_\1", name.strip()).lower()


class KeypointPayload(BaseModel):
	"""One detected keypoint. `part` accepts snake_case or PoseNet camelCase names."""

	part: str = Field(..., min_length=1, description="Body part name, e.g. left_shoulder or leftShoulder")
	x: float = Field(..., ge=-MAX_COORDINATE_PX, le=MAX_COORDINATE_PX, allow_inf_nan=False, description="Pixel x")
	y: float = Field(..., ge=-MAX_COORDINATE_PX, le=MAX_COORDINATE_PX, allow_inf_nan=False, description="Pixel y")
	score: float = Field(1.0, ge=0.0, le=1.0, description="Confidence/visibility")

	@field_validator("part")
	@classmethod
	def _normalize_part(cls, v: str) -> str:
		return normalize_part_name(v)


class KeypointSetPayload(BaseModel):
	"""Request body for POST /measure/keypoints. One subject, one frame."""

	detected: bool = Field(True, description="False when the estimator found no subject")
	keypoints: List[KeypointPayload] = Field(default_factory=list)
	width: int = Field(0, ge=0, description="Frame width in pixels (informational)")
	height: int = Field(0, ge=0, description="Frame height in pixels (informational)")
	min_score: float = Field(0.0, ge=0.0, le=1.0, description="Treat keypoints below this score as absent")

	def to_pose_frame(self) -> PoseFrame:
		return PoseFrame(
			backend="client",
			width=int(self.width),
			height=int(self.height),
			detected=bool(self.detected),
			keypoints=tuple(Keypoint(name=k.part, x_px=k.x, y_px=k.y, score=k.score) for k in self.keypoints),
		)


class PollingStartPayload(BaseModel):
	"""Request body for POST /measure/polling/start."""

	interval: Optional[float] = Field(None, gt=0.0, description="Seconds between detections; config default if omitted")
