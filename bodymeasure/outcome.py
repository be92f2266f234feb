"""
Outcome channel shared by every stage.

An Outcome is either `Ok(value)` or `Failure(kind, message)`. Callers branch on
the `success` marker (or `isinstance`) instead of catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
	CAMERA_PERMISSION_DENIED = "camera_permission_denied"
	CAMERA_UNAVAILABLE = "camera_unavailable"
	MODEL_LOAD_FAILED = "model_load_failed"
	DETECTION_FAILED = "detection_failed"
	DETECTION_ERROR = "detection_error"


CAMERA_ACCESS_MESSAGE = "Failed to access the camera. Please check camera permissions."
MODEL_LOAD_MESSAGE = "Failed to load the pose model. Please check your installation and network connection."
DETECTION_FAILED_MESSAGE = "Pose estimation failed. Could not detect key points."
DETECTION_ERROR_MESSAGE = "An error occurred during pose detection. Please try again."

_DEFAULT_MESSAGES: Dict[FailureKind, str] = {
	FailureKind.CAMERA_PERMISSION_DENIED: CAMERA_ACCESS_MESSAGE,
	FailureKind.CAMERA_UNAVAILABLE: CAMERA_ACCESS_MESSAGE,
	FailureKind.MODEL_LOAD_FAILED: MODEL_LOAD_MESSAGE,
	FailureKind.DETECTION_FAILED: DETECTION_FAILED_MESSAGE,
	FailureKind.DETECTION_ERROR: DETECTION_ERROR_MESSAGE,
}


@dataclass(frozen=True)
class Ok(Generic[T]):
	"""Success variant; carries the stage's value."""

	value: T

	@property
	def success(self) -> bool:
		return True


@dataclass(frozen=True)
class Failure:
	"""
	Failure variant; `message` is human readable, `kind` is for branching.
	"""

	kind: FailureKind
	message: str

	@property
	def success(self) -> bool:
		return False

	@classmethod
	def of(cls, kind: FailureKind) -> "Failure":
		return cls(kind=kind, message=_DEFAULT_MESSAGES[kind])

	def to_dict(self) -> Dict[str, Any]:
		return {"success": False, "message": self.message, "kind": self.kind.value}


Outcome = Union[Ok[T], Failure]


def is_failure(outcome: "Outcome[Any]") -> bool:
	return isinstance(outcome, Failure)


def to_payload(outcome: "Outcome[Any]") -> Dict[str, Any]:
	"""
	JSON shape for hosts: the failure object, or the success value's own dict.
	"""
	if isinstance(outcome, Failure):
		return outcome.to_dict()
	value = outcome.value
	if hasattr(value, "to_dict"):
		return value.to_dict()
	return {"value": value}
