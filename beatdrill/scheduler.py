"""Self-adjusting repeating task for the asyncio event loop.

The game checks for cycle boundaries by computing how long remains until
the next one and sleeping exactly that long, rather than polling on a fixed
tick.  ``RepeatingTask`` wraps that pattern with an explicit start/stop
lifecycle so a stopped session never leaves a timer behind.
"""

import asyncio
import logging
import typing


logger = logging.getLogger(__name__)


TickCallback = typing.Callable[[], typing.Optional[float]]


class RepeatingTask:

	"""Run a callback repeatedly, re-arming with the delay it returns.

	The callback returns the number of seconds to wait before the next call,
	or ``None`` to end the task.  Negative delays are treated as zero.

	Example:
		```python
		task = RepeatingTask(game.tick, name="rhythm-scheduler")
		task.start()
		...
		task.stop()   # no further ticks fire
		```
	"""

	def __init__ (self, callback: TickCallback, name: str = "beatdrill-repeating-task") -> None:

		self.callback = callback
		self.name = name
		self.calls = 0
		self._task: typing.Optional[asyncio.Task] = None

	@property
	def running (self) -> bool:

		"""True while a wait or callback is pending."""

		return self._task is not None and not self._task.done()

	def start (self, initial_delay: float = 0.0) -> None:

		"""Start calling the callback after ``initial_delay`` seconds.

		Must be called from within a running event loop.  Calling ``start()``
		on a running task is a no-op.
		"""

		if self.running:
			return

		loop = asyncio.get_running_loop()
		self._task = loop.create_task(self._run(initial_delay), name=self.name)

	def stop (self) -> None:

		"""Cancel the pending wait.  Safe to call when not running."""

		if self._task is not None:
			if not self._task.done():
				self._task.cancel()
			self._task = None

	async def wait (self) -> None:

		"""Wait for the task to finish on its own or be cancelled."""

		if self._task is None:
			return

		try:
			await self._task
		except asyncio.CancelledError:
			pass

	async def _run (self, delay: float) -> None:

		next_delay: typing.Optional[float] = delay

		while next_delay is not None:

			await asyncio.sleep(max(0.0, next_delay))

			self.calls += 1

			try:
				next_delay = self.callback()
			except Exception:
				logger.exception(f"Repeating task {self.name!r} failed - stopping")
				return
