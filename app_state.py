"""
Explicit app state: single source of truth for the runtime lifecycle.
Created in lifespan, attached to app.state.state; injected into routes via Depends(get_state).
"""
import asyncio
import logging
from typing import Any, Optional

from bodymeasure.session import MeasurementSession

logger = logging.getLogger(__name__)


class AppState:
	"""
	Holds all runtime state for the app. Populated in server lifespan.
	"""

	cfg: Any = None
	session: Optional[MeasurementSession] = None

	# Outcome fan-out (routers.ws.channel unless overridden)
	channel: Any = None

	# Background polling task (set by start_polling)
	poll_task: Optional["asyncio.Task[None]"] = None

	def __init__(self, cfg: Any = None, session: Optional[MeasurementSession] = None, channel: Any = None) -> None:
		self.cfg = cfg
		self.session = session
		self.channel = channel
		self.poll_task = None

	@property
	def polling(self) -> bool:
		return self.poll_task is not None and not self.poll_task.done()

	async def _broadcast(self, out) -> None:
		if self.channel is not None:
			await self.channel.publish(out)

	def start_polling(self, interval: float) -> None:
		"""
		Spawn the detection loop on the running event loop. No-op if it is already running.
		"""
		if self.polling:
			return
		self.poll_task = asyncio.create_task(self.session.run(interval=float(interval), on_outcome=self._broadcast))
		logger.info("[SESSION] polling started (interval=%.2fs)", float(interval))

	async def stop_polling(self) -> None:
		task, self.poll_task = self.poll_task, None
		if self.session is not None:
			self.session.stop_polling()
		if task is None:
			return
		task.cancel()
		try:
			await task
		except asyncio.CancelledError:
			pass
		logger.info("[SESSION] polling stopped")
