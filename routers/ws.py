"""Measurement push channel. Route: /ws."""
import asyncio
import json
from typing import Any, Dict, Optional, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from bodymeasure.outcome import Outcome, to_payload

router = APIRouter(tags=["ws"])


def measurement_message(outcome: Outcome[Any]) -> Dict[str, Any]:
	msg: Dict[str, Any] = {"type": "measurement"}
	msg.update(to_payload(outcome))
	return msg


class MeasurementChannel:
	"""
	Fans each polled outcome out to the connected clients. A new client gets
	the latest outcome right away so it does not wait for the next tick.
	"""

	def __init__(self) -> None:
		self._clients: Set[WebSocket] = set()
		self._lock = asyncio.Lock()

	async def connect(self, websocket: WebSocket, latest: Optional[Outcome[Any]] = None) -> None:
		await websocket.accept()
		if latest is not None:
			await websocket.send_text(json.dumps(measurement_message(latest), separators=(",", ":")))
		async with self._lock:
			self._clients.add(websocket)

	async def disconnect(self, websocket: WebSocket) -> None:
		async with self._lock:
			self._clients.discard(websocket)

	async def publish(self, outcome: Outcome[Any]) -> None:
		payload = json.dumps(measurement_message(outcome), separators=(",", ":"))
		async with self._lock:
			clients = list(self._clients)
		if not clients:
			return
		results = await asyncio.gather(*(ws.send_text(payload) for ws in clients), return_exceptions=True)
		dead = [ws for ws, res in zip(clients, results) if isinstance(res, Exception)]
		if dead:
			async with self._lock:
				self._clients.difference_update(dead)


channel = MeasurementChannel()


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
	state = getattr(websocket.app.state, "state", None)
	session = state.session if state is not None else None
	await channel.connect(websocket, latest=session.latest if session is not None else None)
	try:
		while True:
			await websocket.receive_text()
	except WebSocketDisconnect:
		pass
	finally:
		await channel.disconnect(websocket)
