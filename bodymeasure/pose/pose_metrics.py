from __future__ import annotations

import math
from typing import Optional, Tuple

from bodymeasure.outcome import Failure, FailureKind, Ok, Outcome
from bodymeasure.pose.types import Keypoint, MeasurementRecord, PoseFrame


SHOULDER_PAIR: Tuple[str, str] = ("left_shoulder", "right_shoulder")
HIP_PAIR: Tuple[str, str] = ("left_hip", "right_hip")
# Nose to left ankle; the head top is not a keypoint.
HEIGHT_PAIR: Tuple[str, str] = ("nose", "left_ankle")


def distance(a: Keypoint, b: Keypoint) -> float:
	"""
	Planar Euclidean distance in pixels.
	"""
	return math.hypot(float(a.x_px) - float(b.x_px), float(a.y_px) - float(b.y_px))


def _lookup(frame: PoseFrame, name: str, min_score: float) -> Optional[Keypoint]:
	kp = frame.get(name)
	if kp is None or float(kp.score) < min_score:
		return None
	return kp


def pair_distance(frame: PoseFrame, pair: Tuple[str, str], min_score: float = 0.0) -> float:
	"""
	Distance between the two named keypoints, or 0.0 if either is absent.
	"""
	a = _lookup(frame, pair[0], min_score)
	b = _lookup(frame, pair[1], min_score)
	if a is None or b is None:
		return 0.0
	return distance(a, b)


def measure_pose(frame: Optional[PoseFrame], min_score: float = 0.0) -> Outcome[MeasurementRecord]:
	"""
	Turn one PoseFrame into shoulder width, hip width and height (pixels).

	Missing keypoints degrade the affected measurement to 0.0; only a frame with
	no detected subject is a failure.
	"""
	if frame is None or not frame.detected:
		return Failure.of(FailureKind.DETECTION_FAILED)
	return Ok(
		MeasurementRecord(
			shoulder_width=pair_distance(frame, SHOULDER_PAIR, min_score),
			hip_width=pair_distance(frame, HIP_PAIR, min_score),
			height=pair_distance(frame, HEIGHT_PAIR, min_score),
		)
	)
