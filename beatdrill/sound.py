"""Sound output for clicks and previews.

The game never synthesises audio itself.  It asks a ``SoundEngine`` to
play a note at a time on the audio clock and moves on.  ``MidiSoundEngine``
sends the notes to a MIDI output opened with ``mido`` so any synth, drum
machine or DAW can voice them.  ``SilentSoundEngine`` stands in when no
device is available.
"""

import asyncio
import collections
import logging
import typing

import mido

import beatdrill.chords
import beatdrill.clock
import beatdrill.constants


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class SoundEngine (typing.Protocol):

	"""
	Fire-and-forget note playback on the audio clock.
	"""

	def play (self, note: str, start_time: float, duration: float, gain: float = 1.0, pan: float = 0.0) -> None:
		...

	def cancel_scheduled (self) -> None:
		...


def gain_to_velocity (gain: float) -> int:

	"""Map a 0-1 gain to a MIDI velocity (1-127)."""

	return max(1, min(127, round(gain * 127)))


def pan_to_cc (pan: float) -> int:

	"""Map a -1 (left) to 1 (right) pan to a CC 10 value (0-127)."""

	return max(0, min(127, round((pan + 1.0) / 2.0 * 127)))


class SilentSoundEngine:

	"""
	A sound engine that only logs.  Used when no MIDI output can be opened.
	"""

	def play (self, note: str, start_time: float, duration: float, gain: float = 1.0, pan: float = 0.0) -> None:

		logger.debug(f"(silent) {note} at {start_time:.3f}s for {duration:.3f}s")

	def cancel_scheduled (self) -> None:
		return None

	def close (self) -> None:
		return None


class MidiSoundEngine:

	"""Play notes on a MIDI output port at audio clock times.

	Notes whose start time has passed are sent immediately; later notes are
	held with ``loop.call_later`` until they are due.  Every note-off is
	scheduled the same way.  Pending sends can be dropped with
	``cancel_scheduled()``, which is how a stopped preview goes quiet.

	Delayed sends need a running asyncio loop.  Without one, a note is sent
	immediately and its note-off follows at once.
	"""

	def __init__ (self, midi_out: typing.Any, clock: beatdrill.clock.Clock, channel: int = 0) -> None:

		if not 0 <= channel <= 15:
			raise ValueError(f"MIDI channel must be 0-15 (got {channel})")

		self.midi_out = midi_out
		self.clock = clock
		self.channel = channel
		self._pending: typing.Set[asyncio.TimerHandle] = set()
		self._sounding: typing.Counter[int] = collections.Counter()

	def play (self, note: str, start_time: float, duration: float, gain: float = 1.0, pan: float = 0.0) -> None:

		"""Schedule ``note`` at ``start_time`` for ``duration`` seconds."""

		midi_note = beatdrill.chords.note_to_midi(note)
		velocity = gain_to_velocity(gain)
		pan_value = pan_to_cc(pan)
		delay = start_time - self.clock.now()

		try:
			loop: typing.Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
		except RuntimeError:
			loop = None

		if loop is None:
			self._note_on(midi_note, velocity, pan_value)
			self._note_off(midi_note)
			return

		if delay <= 0:
			self._note_on(midi_note, velocity, pan_value)
		else:
			self._later(loop, delay, self._note_on, midi_note, velocity, pan_value)

		self._later(loop, max(delay, 0.0) + duration, self._note_off, midi_note)

	def cancel_scheduled (self) -> None:

		"""Drop every pending send and silence any sounding notes."""

		for handle in list(self._pending):
			handle.cancel()

		self._pending.clear()

		for midi_note in list(self._sounding):
			self._send(mido.Message('note_off', channel=self.channel, note=midi_note, velocity=0))

		self._sounding.clear()

	def close (self) -> None:

		"""Cancel pending sends and close the port."""

		self.cancel_scheduled()

		if self.midi_out is not None:
			try:
				self.midi_out.close()
			except Exception:
				logger.exception("Failed to close MIDI output")
			self.midi_out = None

	def _later (self, loop: asyncio.AbstractEventLoop, delay: float, fn: typing.Callable[..., None], *args: typing.Any) -> None:

		handle: typing.Optional[asyncio.TimerHandle] = None

		def fire () -> None:
			self._pending.discard(handle)  # type: ignore[arg-type]
			fn(*args)

		handle = loop.call_later(delay, fire)
		self._pending.add(handle)

	def _note_on (self, midi_note: int, velocity: int, pan_value: int) -> None:

		self._send(mido.Message('control_change', channel=self.channel, control=beatdrill.constants.MIDI_PAN_CC, value=pan_value))
		self._send(mido.Message('note_on', channel=self.channel, note=midi_note, velocity=velocity))
		self._sounding[midi_note] += 1

	def _note_off (self, midi_note: int) -> None:

		# Overlapping notes of the same pitch share one note-off, sent when the last one ends.
		if self._sounding[midi_note] > 1:
			self._sounding[midi_note] -= 1
			return

		del self._sounding[midi_note]
		self._send(mido.Message('note_off', channel=self.channel, note=midi_note, velocity=0))

	def _send (self, message: mido.Message) -> None:

		if self.midi_out is None:
			return

		try:
			self.midi_out.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")
