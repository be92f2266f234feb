from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CameraConfig:
	backend: str = "opencv"  # opencv / picamera2
	# OpenCV device index (0 = first webcam).
	device_index: int = 0
	width: int = 640
	height: int = 480
	picamera2_index: int = 0


@dataclass(frozen=True)
class PoseConfig:
	backend: str = "mediapipe"
	model_complexity: int = 1
	min_detection_confidence: float = 0.5
	min_tracking_confidence: float = 0.5
	# Keypoints with a lower visibility score are treated as absent. 0 keeps all.
	min_keypoint_score: float = 0.0


@dataclass(frozen=True)
class DetectionConfig:
	poll_interval_seconds: float = 1.0
	# Start camera + model + polling when the server starts.
	autostart: bool = False


@dataclass(frozen=True)
class ServerConfig:
	host: str = "127.0.0.1"
	port: int = 8000


@dataclass(frozen=True)
class LoggingConfig:
	level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
	camera: CameraConfig = field(default_factory=CameraConfig)
	pose: PoseConfig = field(default_factory=PoseConfig)
	detection: DetectionConfig = field(default_factory=DetectionConfig)
	server: ServerConfig = field(default_factory=ServerConfig)
	logging: LoggingConfig = field(default_factory=LoggingConfig)


_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# bodymeasure/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	Intended for the CLI and tests; the server normally uses the default path.
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except (TypeError, ValueError):
		return int(default)


def _as_bool(v: Any, default: bool) -> bool:
	if isinstance(v, bool):
		return v
	if isinstance(v, (int, float)):
		return bool(v)
	if isinstance(v, str):
		return v.strip().lower() in ("1", "true", "yes", "on")
	return bool(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		return float(v)
	except (TypeError, ValueError):
		return float(default)


def _clamp01(v: float, default: float) -> float:
	return float(v) if 0.0 <= float(v) <= 1.0 else float(default)


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	if not p.exists():
		# Defaults-only config; app can still run.
		return AppConfig()
	try:
		raw = json.loads(p.read_text(encoding="utf-8"))
	except (OSError, ValueError) as e:
		# If config is malformed, fail safe to defaults (but keep app running).
		logger.warning("[CONFIG] failed to read %s, using defaults: %s", p, e)
		return AppConfig()

	if not isinstance(raw, dict):
		return AppConfig()

	cam_backend = _as_str(_deep_get(raw, ["camera", "backend"], "opencv"), "opencv").strip().lower()
	cam_device = _as_int(_deep_get(raw, ["camera", "device_index"], 0), 0)
	cam_w = _as_int(_deep_get(raw, ["camera", "width"], 640), 640)
	cam_h = _as_int(_deep_get(raw, ["camera", "height"], 480), 480)
	cam_pc2_idx = _as_int(_deep_get(raw, ["camera", "picamera2_index"], 0), 0)

	pose_backend = _as_str(_deep_get(raw, ["pose", "backend"], "mediapipe"), "mediapipe").strip().lower()
	pose_complexity = _as_int(_deep_get(raw, ["pose", "model_complexity"], 1), 1)
	pose_det = _as_float(_deep_get(raw, ["pose", "min_detection_confidence"], 0.5), 0.5)
	pose_trk = _as_float(_deep_get(raw, ["pose", "min_tracking_confidence"], 0.5), 0.5)
	pose_min_score = _as_float(_deep_get(raw, ["pose", "min_keypoint_score"], 0.0), 0.0)

	poll_sec = _as_float(_deep_get(raw, ["detection", "poll_interval_seconds"], 1.0), 1.0)
	poll_sec = max(0.05, float(poll_sec))
	autostart = _as_bool(_deep_get(raw, ["detection", "autostart"], False), False)

	srv_host = _as_str(_deep_get(raw, ["server", "host"], "127.0.0.1"), "127.0.0.1").strip()
	srv_port = _as_int(_deep_get(raw, ["server", "port"], 8000), 8000)

	log_level = _as_str(_deep_get(raw, ["logging", "level"], "INFO"), "INFO").strip().upper()

	return AppConfig(
		camera=CameraConfig(
			backend=cam_backend or "opencv",
			# NOTE: do not use `or 1` here; device index 0 is valid and would be overwritten.
			device_index=int(cam_device) if int(cam_device) >= 0 else 0,
			width=int(cam_w) if int(cam_w) > 0 else 640,
			height=int(cam_h) if int(cam_h) > 0 else 480,
			picamera2_index=int(cam_pc2_idx) if int(cam_pc2_idx) >= 0 else 0,
		),
		pose=PoseConfig(
			backend=pose_backend or "mediapipe",
			model_complexity=int(pose_complexity) if int(pose_complexity) in (0, 1, 2) else 1,
			min_detection_confidence=_clamp01(pose_det, 0.5),
			min_tracking_confidence=_clamp01(pose_trk, 0.5),
			min_keypoint_score=_clamp01(pose_min_score, 0.0),
		),
		detection=DetectionConfig(poll_interval_seconds=float(poll_sec), autostart=autostart),
		server=ServerConfig(host=srv_host or "127.0.0.1", port=int(srv_port) if 0 < int(srv_port) < 65536 else 8000),
		logging=LoggingConfig(level=log_level or "INFO"),
	)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE
