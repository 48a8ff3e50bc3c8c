import collections
import random
import typing

T = typing.TypeVar("T")


class RecentHistory (typing.Generic[T]):

	"""A bounded first-in first-out record of recently used items.

	Holds at most ``max_size`` items; adding one more drops the oldest.
	Used to stop quizzes from asking the same question twice in a row.

	Example:
		```python
		recent = RecentHistory(max_size=3)
		for item in ["a", "b", "c", "d"]:
			recent.add(item)
		"a" in recent   # False - evicted
		```
	"""

	def __init__ (self, max_size: int) -> None:

		if max_size < 0:
			raise ValueError(f"max_size cannot be negative (got {max_size})")

		self.max_size = max_size
		self._items: typing.Deque[T] = collections.deque(maxlen=max_size)

	def add (self, item: T) -> None:

		"""Record an item as used, evicting the oldest when full."""

		if self.max_size == 0:
			return

		self._items.append(item)

	def clear (self) -> None:
		self._items.clear()

	def items (self) -> typing.List[T]:

		"""Recorded items, oldest first."""

		return list(self._items)

	def __contains__ (self, item: object) -> bool:
		return item in self._items

	def __len__ (self) -> int:
		return len(self._items)


def choose_fresh (pool: typing.Sequence[T], history: RecentHistory[T], rng: random.Random) -> T:

	"""Pick a random item from ``pool`` that is not in ``history``.

	Falls back to the whole pool when every item is recent.  The choice is
	recorded in ``history``.

	Parameters:
		pool: Items to choose from
		history: Recently used items to avoid
		rng: Random number generator instance
	"""

	if not pool:
		raise ValueError("Pool cannot be empty")

	fresh = [item for item in pool if item not in history]
	choice = rng.choice(fresh if fresh else list(pool))
	history.add(choice)

	return choice
