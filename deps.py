"""
FastAPI dependencies. Use Depends(get_state) in route handlers to receive AppState.
"""
from fastapi import HTTPException, Request

from app_state import AppState
from bodymeasure.session import MeasurementSession


def get_state(request: Request) -> AppState:
	"""Return the app state instance attached in lifespan."""
	return request.app.state.state


def get_session(request: Request) -> MeasurementSession:
	"""Return the measurement session, or 503 if the app has none."""
	session = get_state(request).session
	if session is None:
		raise HTTPException(status_code=503, detail="Measurement session not available")
	return session
