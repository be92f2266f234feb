"""Camera routes. Routes: /camera/start, stop, status, mjpeg, snapshot.jpg."""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response, StreamingResponse

from app_state import AppState
from bodymeasure.outcome import Failure
from bodymeasure.session import MeasurementSession, SessionState
from deps import get_session, get_state

router = APIRouter(tags=["camera"])


def _require_camera(session: MeasurementSession) -> None:
	if session.state == SessionState.IDLE:
		raise HTTPException(status_code=409, detail="Camera not started")


@router.post("/camera/start")
async def camera_start(session: MeasurementSession = Depends(get_session)):
	"""Open the configured camera. Failures come back as {success: false, message}."""
	out = await session.start_camera()
	if isinstance(out, Failure):
		return out.to_dict()
	return {"detail": "Camera started.", "status": session.video.get_status()}


@router.post("/camera/stop")
async def camera_stop(state: AppState = Depends(get_state), session: MeasurementSession = Depends(get_session)):
	"""Stop polling, unload the model and release the camera."""
	await state.stop_polling()
	try:
		await session.stop()
	except Exception as e:
		raise HTTPException(status_code=500, detail=f"Camera stop failed: {e!r}")
	return {"detail": "Camera stopped.", "status": session.video.get_status()}


@router.get("/camera/status")
async def camera_status(session: MeasurementSession = Depends(get_session)):
	st = session.video.get_status()
	st["backend"] = session.video.name()
	return st


@router.get("/camera/mjpeg")
async def camera_mjpeg(fps: float = 15.0, session: MeasurementSession = Depends(get_session)):
	"""Live MJPEG preview of the camera."""
	_require_camera(session)
	return StreamingResponse(
		session.video.mjpeg_stream(fps=float(fps)),
		media_type="multipart/x-mixed-replace; boundary=frame",
		headers={
			"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
			"Pragma": "no-cache",
			"Connection": "keep-alive",
		},
	)


@router.get("/camera/snapshot.jpg")
async def camera_snapshot(session: MeasurementSession = Depends(get_session)):
	"""Return a single latest JPEG frame."""
	_require_camera(session)
	jpeg = await session.video.snapshot_jpeg()
	if jpeg is None:
		raise HTTPException(status_code=404, detail="No JPEG frame available yet")
	return Response(
		content=jpeg,
		media_type="image/jpeg",
		headers={
			"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
			"Pragma": "no-cache",
		},
	)
