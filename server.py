import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app_state import AppState
from bodymeasure import __version__
from bodymeasure.config import get_config, set_config_path
from bodymeasure.outcome import Failure
from bodymeasure.pose.base import get_pose_provider
from bodymeasure.session import MeasurementSession
from bodymeasure.video_backend import get_video_backend
from routers import camera, measure, ws

logger = logging.getLogger(__name__)


def _build_session(cfg) -> MeasurementSession:
	return MeasurementSession(
		get_video_backend(cfg),
		get_pose_provider(cfg),
		min_score=cfg.pose.min_keypoint_score,
	)


async def _autostart(state: AppState) -> None:
	"""
	Camera -> model -> polling. Any failure is logged and leaves the app
	running so the UI can retry through the routes.
	"""
	out = await state.session.start()
	if isinstance(out, Failure):
		logger.warning("[SESSION] autostart stopped: %s", out.message)
		return
	state.start_polling(state.cfg.detection.poll_interval_seconds)


def create_app(session: Optional[MeasurementSession] = None) -> FastAPI:
	"""
	Build the FastAPI app. Tests pass a session with fake camera/model;
	otherwise one is built from config.json on startup.
	"""

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		cfg = get_config()
		state = AppState(cfg=cfg, session=session or _build_session(cfg), channel=ws.channel)
		app.state.state = state
		if cfg.detection.autostart:
			await _autostart(state)
		try:
			yield
		finally:
			await state.stop_polling()
			try:
				await state.session.stop()
			except Exception as e:
				logger.warning("[SESSION] shutdown failed: %r", e)

	app = FastAPI(title="bodymeasure", version=__version__, lifespan=lifespan)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.include_router(camera.router)
	app.include_router(measure.router)
	app.include_router(ws.router)

	@app.get("/health")
	async def health():
		return {"ok": True, "version": __version__}

	return app


app = create_app()


def main() -> None:
	import uvicorn

	parser = argparse.ArgumentParser(description="Body measurement HTTP/WebSocket server.")
	parser.add_argument("--config", help="Path to config.json (defaults to the repo root).")
	parser.add_argument("--host", help="Bind host (overrides config).")
	parser.add_argument("--port", type=int, help="Bind port (overrides config).")
	parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
	args = parser.parse_args()

	if args.config:
		set_config_path(args.config)
	cfg = get_config()

	level = logging.DEBUG if args.debug else getattr(logging, cfg.logging.level, logging.INFO)
	logging.basicConfig(level=level, format='%(levelname)s:%(name)s:%(message)s')

	uvicorn.run(app, host=args.host or cfg.server.host, port=int(args.port or cfg.server.port))


if __name__ == "__main__":
	main()
