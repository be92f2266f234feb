from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from bodymeasure.config import AppConfig, get_config
from bodymeasure.pose.types import PoseFrame


class PoseProvider(ABC):
	"""
	Model adapter interface.

	`load()` fetches/initializes the model once and raises on failure.
	Implementations should take an RGB image (H,W,3 uint8) and return a PoseFrame.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def load(self) -> None: ...

	@abstractmethod
	def infer_rgb(self, rgb, t_video: Optional[float] = None) -> PoseFrame: ...

	@abstractmethod
	def close(self) -> None: ...


def get_pose_provider(cfg: Optional[AppConfig] = None, *, backend_override: Optional[str] = None) -> PoseProvider:
	cfg = cfg or get_config()
	backend = (backend_override or cfg.pose.backend or "mediapipe").strip().lower()
	if backend not in ("mediapipe", "mediapipe_pose"):
		raise ValueError(f"unknown pose backend: {backend!r}")

	from bodymeasure.pose.mediapipe_provider import MediaPipePoseProvider

	return MediaPipePoseProvider(
		model_complexity=cfg.pose.model_complexity,
		min_detection_confidence=cfg.pose.min_detection_confidence,
		min_tracking_confidence=cfg.pose.min_tracking_confidence,
		min_keypoint_score=cfg.pose.min_keypoint_score,
	)
