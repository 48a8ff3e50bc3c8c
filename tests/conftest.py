import typing

import mido
import pytest


class FakeMidiOut:

	"""MIDI output stub that records every message sent."""

	def __init__ (self) -> None:

		self.messages: typing.List[mido.Message] = []
		self.closed = False

	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.messages.append(message)

	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True

	def of_type (self, message_type: str) -> typing.List[mido.Message]:

		"""Recorded messages of one type, in send order."""

		return [m for m in self.messages if m.type == message_type]


class ManualClock:

	"""Audio clock that only moves when a test advances it."""

	def __init__ (self, start: float = 0.0) -> None:

		self.time = start

	def now (self) -> float:
		return self.time

	def advance (self, seconds: float) -> None:
		self.time += seconds

	def set (self, time: float) -> None:
		self.time = time


class RecordingSound:

	"""Sound engine stub that records play requests."""

	def __init__ (self) -> None:

		self.played: typing.List[typing.Tuple[str, float, float, float, float]] = []
		self.cancel_count = 0

	def play (self, note: str, start_time: float, duration: float, gain: float = 1.0, pan: float = 0.0) -> None:

		"""Record a note request."""

		self.played.append((note, start_time, duration, gain, pan))

	def cancel_scheduled (self) -> None:

		"""Count cancellations."""

		self.cancel_count += 1


def _fake_get_output_names () -> typing.List[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fresh fake MIDI output regardless of the name."""

	return FakeMidiOut()


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido so device selection opens fake outputs."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def midi_out () -> FakeMidiOut:
	return FakeMidiOut()


@pytest.fixture
def clock () -> ManualClock:

	"""A manual clock starting at t = 10s (away from zero, like a warmed-up audio clock)."""

	return ManualClock(start=10.0)


@pytest.fixture
def sound () -> RecordingSound:
	return RecordingSound()
