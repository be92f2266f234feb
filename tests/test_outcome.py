import dataclasses

import pytest

from bodymeasure.outcome import Failure, FailureKind, Ok, is_failure, to_payload
from bodymeasure.pose.types import MeasurementRecord


def test_failure_of_uses_default_message():
	f = Failure.of(FailureKind.CAMERA_PERMISSION_DENIED)
	assert f.success is False
	assert f.to_dict() == {
		"success": False,
		"message": "Failed to access the camera. Please check camera permissions.",
		"kind": "camera_permission_denied",
	}


def test_ok_payload_is_value_dict():
	out = Ok(MeasurementRecord(1.0, 2.0, 3.0))
	assert out.success is True
	assert not is_failure(out)
	assert to_payload(out) == {"shoulderWidth": 1.0, "hipWidth": 2.0, "height": 3.0}
	assert "success" not in to_payload(out)


def test_ok_payload_wraps_plain_values():
	assert to_payload(Ok(5)) == {"value": 5}


def test_variants_are_frozen():
	f = Failure.of(FailureKind.DETECTION_FAILED)
	assert is_failure(f)
	with pytest.raises(dataclasses.FrozenInstanceError):
		f.message = "other"  # type: ignore[misc]
