"""Pydantic request/response models for API validation and docs."""
from schemas.requests import (
	KeypointPayload,
	KeypointSetPayload,
	PollingStartPayload,
	normalize_part_name,
)
from schemas.responses import FailureResponse, MeasurementResponse

__all__ = [
	"KeypointPayload",
	"KeypointSetPayload",
	"PollingStartPayload",
	"normalize_part_name",
	"FailureResponse",
	"MeasurementResponse",
]
