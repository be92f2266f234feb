"""Pydantic response models for API docs (routes return the outcome dicts)."""
from typing import Optional

from pydantic import BaseModel


class MeasurementResponse(BaseModel):
	"""Successful measurement, pixel distances."""

	shoulderWidth: float
	hipWidth: float
	height: float


class FailureResponse(BaseModel):
	"""Failed stage. `success` is always false."""

	success: bool = False
	message: str
	kind: Optional[str] = None
