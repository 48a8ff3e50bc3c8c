"""Saved player progress.

Progress is a flat JSON object on disk, read once and rewritten whole on
every change.  Keys used by the games:

- ``best_streak.<mode>`` - best elimination streak per rhythm mode
- ``waveform.highest_level`` - highest unlocked waveform quiz level
- ``waveform.level_scores`` - ``{level: {"correct": n, "total": n}}``

A missing, unreadable or corrupt file behaves as empty progress; write
failures are logged and the game carries on.
"""

import json
import logging
import pathlib
import typing


logger = logging.getLogger(__name__)


class ProgressStore:

	"""
	Key-value progress backed by a JSON file.
	"""

	def __init__ (self, path: typing.Union[str, pathlib.Path]) -> None:

		self.path = pathlib.Path(path)
		self._data: typing.Dict[str, typing.Any] = self._load()

	def _load (self) -> typing.Dict[str, typing.Any]:

		if not self.path.exists():
			return {}

		try:
			data = json.loads(self.path.read_text(encoding="utf-8"))
		except (OSError, ValueError) as e:
			logger.warning(f"Failed to load progress from {self.path}: {e}")
			return {}

		if not isinstance(data, dict):
			logger.warning(f"Ignoring progress file {self.path}: expected a JSON object")
			return {}

		return data

	def save (self) -> None:

		"""Write all progress to disk."""

		try:
			self.path.parent.mkdir(parents=True, exist_ok=True)
			self.path.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
		except OSError as e:
			logger.warning(f"Failed to save progress to {self.path}: {e}")

	def get (self, key: str, default: typing.Any = None) -> typing.Any:
		return self._data.get(key, default)

	def set (self, key: str, value: typing.Any) -> None:

		"""Store a value and save immediately."""

		self._data[key] = value
		self.save()

	def best_streak (self, mode: str) -> int:

		"""Best recorded elimination streak for a rhythm mode (0 if none)."""

		value = self._data.get(f"best_streak.{mode}", 0)

		return value if isinstance(value, int) else 0

	def update_best_streak (self, mode: str, streak: int) -> bool:

		"""Record ``streak`` if it beats the saved best.  Returns True on a new record."""

		if streak <= self.best_streak(mode):
			return False

		self.set(f"best_streak.{mode}", streak)

		return True
