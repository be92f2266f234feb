"""Model and measurement routes. Routes: /model/load, /measure/*."""
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException

from app_state import AppState
from bodymeasure.outcome import Failure, to_payload
from bodymeasure.pose.pose_metrics import measure_pose
from bodymeasure.session import MeasurementSession, SessionState, SessionStateError
from deps import get_session, get_state
from schemas.requests import KeypointSetPayload, PollingStartPayload
from schemas.responses import FailureResponse, MeasurementResponse

router = APIRouter(tags=["measure"])

OutcomeResponse = Union[MeasurementResponse, FailureResponse]


@router.post("/model/load")
async def model_load(session: MeasurementSession = Depends(get_session)):
	"""Load the pose model. The camera must be started first."""
	try:
		out = await session.load_model()
	except SessionStateError as e:
		raise HTTPException(status_code=409, detail=str(e))
	if isinstance(out, Failure):
		return out.to_dict()
	return {"detail": "Model loaded.", "model": session.provider.name(), "state": session.state.value}


@router.post("/measure/detect", response_model=OutcomeResponse)
async def measure_detect(session: MeasurementSession = Depends(get_session)):
	"""Run one detection on the live camera frame."""
	try:
		out = await session.detect_once()
	except SessionStateError as e:
		raise HTTPException(status_code=409, detail=str(e))
	return to_payload(out)


@router.post("/measure/keypoints", response_model=OutcomeResponse)
async def measure_keypoints(payload: KeypointSetPayload):
	"""Measure a keypoint set computed elsewhere (e.g. by a browser-side model)."""
	return to_payload(measure_pose(payload.to_pose_frame(), min_score=payload.min_score))


@router.get("/measure/latest")
async def measure_latest(session: MeasurementSession = Depends(get_session)):
	"""Latest outcome from polling or /measure/detect; 404 before the first detection."""
	if session.latest is None:
		raise HTTPException(status_code=404, detail="No measurement yet")
	return to_payload(session.latest)


@router.get("/measure/status")
async def measure_status(state: AppState = Depends(get_state), session: MeasurementSession = Depends(get_session)):
	st = session.status()
	st["polling"] = state.polling
	return st


@router.post("/measure/polling/start")
async def measure_polling_start(payload: Optional[PollingStartPayload] = None, state: AppState = Depends(get_state), session: MeasurementSession = Depends(get_session)):
	"""Start detecting on a fixed cadence; each outcome is pushed on /ws."""
	if session.state not in (SessionState.MODEL_READY, SessionState.DETECTING):
		raise HTTPException(status_code=409, detail="Camera and model must be ready before polling")
	interval = payload.interval if payload is not None and payload.interval is not None else None
	if interval is None:
		interval = float(state.cfg.detection.poll_interval_seconds)
	state.start_polling(interval)
	return {"detail": "Polling started.", "interval": float(interval)}


@router.post("/measure/polling/stop")
async def measure_polling_stop(state: AppState = Depends(get_state)):
	await state.stop_polling()
	return {"detail": "Polling stopped."}
