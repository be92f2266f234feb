"""
Pose estimation utilities.

This package defines a model-agnostic PoseFrame interface, provider adapters
(e.g., MediaPipe Pose) and the keypoint-to-measurement pipeline, so the pose
stack can be swapped without touching the measurement code.
"""
