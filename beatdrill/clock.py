import time
import typing


@typing.runtime_checkable
class Clock (typing.Protocol):

	"""
	A monotonically increasing time source, in seconds.
	"""

	def now (self) -> float:
		...


class MonotonicClock:

	"""
	Audio clock backed by ``time.perf_counter()``, starting at zero.
	"""

	def __init__ (self) -> None:

		self._origin = time.perf_counter()

	def now (self) -> float:

		"""Seconds since the clock was created."""

		return time.perf_counter() - self._origin
