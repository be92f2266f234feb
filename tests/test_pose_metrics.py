import math

import pytest

from bodymeasure.outcome import DETECTION_FAILED_MESSAGE, Failure, FailureKind, Ok
from bodymeasure.pose.pose_metrics import distance, measure_pose, pair_distance
from bodymeasure.pose.types import Keypoint, MeasurementRecord, PoseFrame

from tests.conftest import EXAMPLE_POINTS, make_frame


def test_full_keypoint_set_measures_all_three():
	out = measure_pose(make_frame(EXAMPLE_POINTS))
	assert isinstance(out, Ok)
	assert out.success is True
	assert out.value == MeasurementRecord(shoulder_width=300.0, hip_width=250.0, height=600.0)
	assert out.value.to_dict() == {"shoulderWidth": 300.0, "hipWidth": 250.0, "height": 600.0}


def test_only_nose_and_ankle_gives_height_only():
	out = measure_pose(make_frame({"nose": (10.0, 20.0), "left_ankle": (40.0, 60.0)}))
	assert isinstance(out, Ok)
	assert out.value.shoulder_width == 0.0
	assert out.value.hip_width == 0.0
	assert out.value.height == pytest.approx(50.0)


@pytest.mark.parametrize("missing", ["left_shoulder", "right_shoulder"])
def test_missing_one_shoulder_degrades_to_zero(missing):
	points = {k: v for k, v in EXAMPLE_POINTS.items() if k != missing}
	out = measure_pose(make_frame(points))
	assert isinstance(out, Ok)
	assert out.value.shoulder_width == 0.0
	assert out.value.hip_width == 250.0
	assert out.value.height == 600.0


def test_empty_but_detected_frame_is_all_zero_success():
	out = measure_pose(make_frame({}))
	assert isinstance(out, Ok)
	assert out.value == MeasurementRecord(0.0, 0.0, 0.0)


def test_no_subject_is_detection_failure():
	out = measure_pose(make_frame(EXAMPLE_POINTS, detected=False))
	assert isinstance(out, Failure)
	assert out.kind == FailureKind.DETECTION_FAILED
	assert out.to_dict()["success"] is False
	assert out.message == DETECTION_FAILED_MESSAGE == "Pose estimation failed. Could not detect key points."


def test_none_frame_is_detection_failure():
	out = measure_pose(None)
	assert isinstance(out, Failure)
	assert out.kind == FailureKind.DETECTION_FAILED


def test_distance_is_symmetric_and_euclidean():
	a = Keypoint("a", 1.5, -2.25)
	b = Keypoint("b", -7.0, 3.125)
	assert distance(a, b) == distance(b, a)
	assert distance(a, b) == pytest.approx(math.sqrt(8.5 ** 2 + 5.375 ** 2))
	assert distance(a, a) == 0.0


def test_duplicate_names_first_match_wins():
	frame = PoseFrame(
		backend="test",
		width=0,
		height=0,
		keypoints=(
			Keypoint("left_hip", 0.0, 0.0),
			Keypoint("right_hip", 100.0, 0.0),
			Keypoint("left_hip", 90.0, 0.0),
		),
	)
	assert frame.get("left_hip").x_px == 0.0
	assert pair_distance(frame, ("left_hip", "right_hip")) == 100.0


def test_min_score_treats_low_confidence_as_absent():
	frame = PoseFrame(
		backend="test",
		width=0,
		height=0,
		keypoints=(
			Keypoint("nose", 0.0, 0.0, score=0.9),
			Keypoint("left_ankle", 0.0, 500.0, score=0.2),
			Keypoint("left_shoulder", 0.0, 0.0, score=0.9),
			Keypoint("right_shoulder", 120.0, 0.0, score=0.9),
		),
	)
	out = measure_pose(frame, min_score=0.5)
	assert isinstance(out, Ok)
	assert out.value.height == 0.0
	assert out.value.shoulder_width == 120.0
	assert measure_pose(frame).value.height == 500.0


def test_pipeline_is_idempotent():
	frame = make_frame(EXAMPLE_POINTS)
	assert measure_pose(frame) == measure_pose(frame)
