from __future__ import annotations

import logging
from typing import List, Optional

from bodymeasure.pose.base import PoseProvider
from bodymeasure.pose.types import COCO17_NAMES, Keypoint, PoseFrame

logger = logging.getLogger(__name__)


class MediaPipePoseProvider(PoseProvider):
	"""
	MediaPipe Pose provider that outputs a canonical COCO-17-ish keypoint set.

	Notes:
	- MediaPipe uses normalized coordinates; we convert to pixel space.
	- `visibility` is used as score (best-effort).
	- Keypoints scoring below `min_keypoint_score` are left out of the frame.
	"""

	def __init__(
		self,
		model_complexity: int = 1,
		min_detection_confidence: float = 0.5,
		min_tracking_confidence: float = 0.5,
		min_keypoint_score: float = 0.0,
	) -> None:
		self._model_complexity = int(model_complexity)
		self._min_detection_confidence = float(min_detection_confidence)
		self._min_tracking_confidence = float(min_tracking_confidence)
		self._min_keypoint_score = float(min_keypoint_score)
		self._mp = None
		self._pose = None

	def name(self) -> str:
		return "mediapipe_pose"

	def load(self) -> None:
		if self._pose is not None:
			return
		try:
			import mediapipe as mp  # type: ignore
		except ImportError as e:
			raise RuntimeError("MediaPipe is not installed. Install it with: pip install mediapipe") from e

		self._mp = mp
		self._pose = mp.solutions.pose.Pose(
			static_image_mode=False,
			model_complexity=self._model_complexity,
			enable_segmentation=False,
			smooth_landmarks=True,
			min_detection_confidence=self._min_detection_confidence,
			min_tracking_confidence=self._min_tracking_confidence,
		)
		logger.info("[POSE] mediapipe pose loaded (complexity=%s)", self._model_complexity)

	def infer_rgb(self, rgb, t_video: Optional[float] = None) -> PoseFrame:
		if self._pose is None:
			raise RuntimeError("pose model not loaded; call load() first")
		# rgb: HxWx3
		h, w = int(rgb.shape[0]), int(rgb.shape[1])
		res = self._pose.process(rgb)
		if not res or not getattr(res, "pose_landmarks", None):
			return PoseFrame(backend=self.name(), width=w, height=h, t_video=t_video, detected=False)

		lm = res.pose_landmarks.landmark
		# Map COCO-ish names using MediaPipe PoseLandmark indices
		PL = self._mp.solutions.pose.PoseLandmark
		mapping = {name: getattr(PL, name.upper()) for name in COCO17_NAMES}
		keypoints: List[Keypoint] = []
		for name, idx in mapping.items():
			p = lm[int(idx)]
			score = float(getattr(p, "visibility", 0.0) or 0.0)
			if score < self._min_keypoint_score:
				continue
			keypoints.append(
				Keypoint(
					name=name,
					x_px=float(p.x) * float(w),
					y_px=float(p.y) * float(h),
					score=score,
				)
			)
		return PoseFrame(backend=self.name(), width=w, height=h, t_video=t_video, keypoints=tuple(keypoints))

	def close(self) -> None:
		pose, self._pose = self._pose, None
		if pose is None:
			return
		try:
			pose.close()
		except Exception as e:
			logger.debug("[POSE] close failed: %s", e)
