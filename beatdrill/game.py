"""Rhythm tapping game sessions.

A ``RhythmGame`` runs one rhythm (a two-voice ``Polyrhythm`` or a
single-voice ``EuclideanRhythm``) against the audio clock.  The player taps
along; each tap is judged against the nearest sounding step and either
extends the streak or counts as a miss.

States::

	menu --start()--> playing --miss (elimination)--> failed
	  ^                  |                               |
	  +--exit_to_menu()--+-------------------------------+

In **practice** a miss resets the streak and play continues.  In
**elimination** a miss ends the round, and every four completed cycles the
tempo rises by 2 BPM, up to 200.

Cycle tracking is driven by ``tick()``, which a ``RepeatingTask`` calls at
each cycle boundary.  Pass ``autoschedule=False`` to drive ``tick()`` by
hand (tests, simulations, or an external loop).

Example:
	```python
	game = RhythmGame(Polyrhythm(3, 4), bpm=80, difficulty="elimination", sound=engine)
	game.events.on("failed", lambda streak, best: print(f"Streak {streak}, best {best}"))
	game.start()
	game.handle_key("f")
	```
"""

import dataclasses
import logging
import typing

import beatdrill.clock
import beatdrill.constants
import beatdrill.event_emitter
import beatdrill.progress
import beatdrill.rhythm
import beatdrill.scheduler
import beatdrill.sound


logger = logging.getLogger(__name__)


DIFFICULTIES: typing.Tuple[str, ...] = ("practice", "elimination")

GAME_EVENTS: typing.Tuple[str, ...] = ("state", "cycle", "bpm", "hit", "miss", "failed")

# Click voicing per voice name: (note, pan).
_CLICKS: typing.Dict[str, typing.Tuple[str, float]] = {
	"left": (beatdrill.constants.LEFT_CLICK_NOTE, beatdrill.constants.LEFT_PAN),
	"right": (beatdrill.constants.RIGHT_CLICK_NOTE, beatdrill.constants.RIGHT_PAN),
	"euclidean": (beatdrill.constants.LEFT_CLICK_NOTE, 0.0),
}


class HitMarkers:

	"""Step indices that were hit recently, each visible for a short time.

	Purely for feedback: a front end can light up the steps returned by
	``active()``.  Markers are also cleared wholesale when a cycle rolls over.
	"""

	def __init__ (self, flash_seconds: float = beatdrill.constants.HIT_FLASH_SECONDS) -> None:

		self.flash_seconds = flash_seconds
		self._expiry: typing.Dict[int, float] = {}

	def add (self, index: int, now: float) -> None:
		self._expiry[index] = now + self.flash_seconds

	def active (self, now: float) -> typing.Set[int]:

		"""Indices whose flash has not yet expired at ``now``."""

		self._expiry = {index: until for index, until in self._expiry.items() if until > now}

		return set(self._expiry)

	def clear (self) -> None:
		self._expiry.clear()


@dataclasses.dataclass(frozen=True)
class TapResult:

	"""
	What happened to one tap.

	``counted`` is False for a miss swallowed by the debounce window.
	"""

	voice: str
	judgement: beatdrill.rhythm.TapJudgement
	counted: bool
	streak: int

	@property
	def hit (self) -> bool:
		return self.judgement.hit


class RhythmGame:

	"""
	One player's rhythm game session.
	"""

	def __init__ (
		self,
		rhythm: beatdrill.rhythm.Rhythm,
		bpm: float = beatdrill.constants.DEFAULT_BPM,
		difficulty: str = "practice",
		clock: typing.Optional[beatdrill.clock.Clock] = None,
		sound: typing.Optional[beatdrill.sound.SoundEngine] = None,
		progress: typing.Optional[beatdrill.progress.ProgressStore] = None,
		autoschedule: bool = True
	) -> None:

		"""Create a session in the ``menu`` state.

		Parameters:
			rhythm: The rhythm to play
			bpm: Starting tempo for each round
			difficulty: ``"practice"`` or ``"elimination"``
			clock: Audio clock (default: a new ``MonotonicClock``)
			sound: Engine for tap clicks and previews (default: silent)
			progress: Optional store for best streaks
			autoschedule: When True, ``start()`` runs ``tick()`` on a
				``RepeatingTask`` and must be called inside a running event loop
		"""

		if bpm <= 0:
			raise ValueError("BPM must be positive")

		if difficulty not in DIFFICULTIES:
			raise ValueError(f"Unknown difficulty {difficulty!r}. Expected one of {list(DIFFICULTIES)}")

		self.rhythm = rhythm
		self.bpm = bpm
		self.difficulty = difficulty
		self.clock: beatdrill.clock.Clock = clock if clock is not None else beatdrill.clock.MonotonicClock()
		self.sound: beatdrill.sound.SoundEngine = sound if sound is not None else beatdrill.sound.SilentSoundEngine()
		self.progress = progress
		self.autoschedule = autoschedule
		self.events = beatdrill.event_emitter.EventEmitter(GAME_EVENTS)

		self.state = "menu"
		self.current_bpm: float = bpm
		self.streak = 0
		self.best_streaks: typing.Dict[str, int] = {
			mode: (progress.best_streak(mode) if progress is not None else 0)
			for mode in ("polyrhythm", "euclidean")
		}

		self.cycle_start_time = 0.0
		self.cycle_count = 0
		self.completed_cycles = 0
		self.beats: typing.Dict[str, typing.List[typing.Tuple[float, int]]] = {}
		self.last_miss_time: typing.Optional[float] = None
		self.hit_markers: typing.Dict[str, HitMarkers] = {name: HitMarkers() for name in rhythm.voices}

		self._scheduler: typing.Optional[beatdrill.scheduler.RepeatingTask] = None
		self._preview_until: typing.Optional[float] = None

	# ------------------------------------------------------------------
	# Properties
	# ------------------------------------------------------------------

	@property
	def mode (self) -> str:

		"""``"polyrhythm"`` or ``"euclidean"``."""

		return self.rhythm.kind

	@property
	def best_streak (self) -> int:

		"""Best elimination streak for the current mode."""

		return self.best_streaks.get(self.mode, 0)

	@property
	def cycle_duration (self) -> float:
		return self.rhythm.cycle_duration(self.current_bpm)

	@property
	def scheduler_running (self) -> bool:
		return self._scheduler is not None and self._scheduler.running

	def hit_indices (self, voice_name: typing.Optional[str] = None) -> typing.Set[int]:

		"""Step indices of ``voice_name`` that are currently flashing as hit."""

		return self.hit_markers[self._resolve_voice(voice_name)].active(self.clock.now())

	# ------------------------------------------------------------------
	# Configuration (menu only)
	# ------------------------------------------------------------------

	def configure (
		self,
		rhythm: typing.Optional[beatdrill.rhythm.Rhythm] = None,
		bpm: typing.Optional[float] = None,
		difficulty: typing.Optional[str] = None
	) -> None:

		"""Change the rhythm, tempo or difficulty between rounds.

		Raises:
			RuntimeError: If a round is in progress.
		"""

		if self.state == "playing":
			raise RuntimeError("Cannot reconfigure a game while playing")

		if bpm is not None:
			if bpm <= 0:
				raise ValueError("BPM must be positive")
			self.bpm = bpm

		if difficulty is not None:
			if difficulty not in DIFFICULTIES:
				raise ValueError(f"Unknown difficulty {difficulty!r}. Expected one of {list(DIFFICULTIES)}")
			self.difficulty = difficulty

		if rhythm is not None:
			self.stop_preview()
			self.rhythm = rhythm
			self.hit_markers = {name: HitMarkers() for name in rhythm.voices}

	# ------------------------------------------------------------------
	# Lifecycle
	# ------------------------------------------------------------------

	def start (self) -> None:

		"""Begin a round from the menu or after a failure.

		Resets the streak, tempo and cycle tracking, runs the first tick
		immediately, and (with autoscheduling) arms the scheduler for the
		next cycle boundary.
		"""

		if self.state == "playing":
			return

		self._reset_cycle_tracking()
		self.streak = 0
		self.current_bpm = self.bpm
		self.last_miss_time = None

		self._set_state("playing")
		logger.info(f"Round started: {self.rhythm!r} at {self.current_bpm:g} BPM ({self.difficulty})")

		delay = self.tick()

		if self.autoschedule and delay is not None:
			self._scheduler = beatdrill.scheduler.RepeatingTask(self.tick, name="beatdrill-rhythm-scheduler")
			self._scheduler.start(initial_delay=delay)

	def stop (self) -> None:

		"""Cancel pending scheduler and preview callbacks and zero the cycle tracking."""

		if self._scheduler is not None:
			self._scheduler.stop()
			self._scheduler = None

		self.stop_preview()
		self._reset_cycle_tracking()

	def exit_to_menu (self) -> None:

		"""Abandon the current round (or leave the failed screen)."""

		self.stop()
		self._set_state("menu")

	def _reset_cycle_tracking (self) -> None:

		self.cycle_start_time = 0.0
		self.cycle_count = 0
		self.completed_cycles = 0
		self.beats = {}

		for markers in self.hit_markers.values():
			markers.clear()

	def _set_state (self, state: str) -> None:

		if state != self.state:
			self.state = state
			self.events.emit("state", state)

	# ------------------------------------------------------------------
	# Scheduling
	# ------------------------------------------------------------------

	def tick (self) -> typing.Optional[float]:

		"""Roll the cycle over if its end has passed.

		A new cycle starts ``LOOKAHEAD_SECONDS`` after now, increments
		``cycle_count``, clears hit markers and recomputes beat times.  In
		elimination mode the tempo ramps before the new cycle is laid out.

		Returns:
			Seconds until the current cycle ends, or ``None`` when not playing.
		"""

		if self.state != "playing":
			return None

		now = self.clock.now()

		if self.cycle_count == 0:
			self._begin_cycle(now)

		elif now >= self.cycle_start_time + self.cycle_duration:
			self.completed_cycles += 1
			self._maybe_ramp_bpm()
			self._begin_cycle(now)

		return self.cycle_start_time + self.cycle_duration - now

	def _begin_cycle (self, now: float) -> None:

		self.cycle_start_time = now + beatdrill.constants.LOOKAHEAD_SECONDS
		self.cycle_count += 1

		for markers in self.hit_markers.values():
			markers.clear()

		self.beats = self.rhythm.beat_times(self.cycle_start_time, self.current_bpm)

		logger.debug(f"Cycle {self.cycle_count} starts at {self.cycle_start_time:.3f}s")
		self.events.emit("cycle", self.cycle_count, self.cycle_start_time)

	def _maybe_ramp_bpm (self) -> None:

		if self.difficulty != "elimination":
			return

		if self.completed_cycles % beatdrill.constants.BPM_RAMP_EVERY_CYCLES != 0:
			return

		new_bpm = min(self.current_bpm + beatdrill.constants.BPM_RAMP_INCREMENT, beatdrill.constants.MAX_BPM)

		if new_bpm != self.current_bpm:
			self.current_bpm = new_bpm
			logger.info(f"Tempo up: {self.current_bpm:g} BPM")
			self.events.emit("bpm", self.current_bpm)

	# ------------------------------------------------------------------
	# Input
	# ------------------------------------------------------------------

	def _resolve_voice (self, voice_name: typing.Optional[str]) -> str:

		if voice_name is None:
			return "euclidean" if self.mode == "euclidean" else "left"

		self.rhythm.voice(voice_name)

		return voice_name

	def handle_key (self, key: str) -> typing.Optional[TapResult]:

		"""Map a keystroke to a tap.

		``f`` taps the left voice, ``j`` the right voice.  In Euclidean mode
		``f`` and space both tap the single voice.  Other keys are ignored.
		"""

		key = key.lower()

		if self.mode == "euclidean":
			if key in ("f", " "):
				return self.tap("euclidean")
			return None

		if key == "f":
			return self.tap("left")

		if key == "j":
			return self.tap("right")

		return None

	def tap (self, voice_name: typing.Optional[str] = None) -> typing.Optional[TapResult]:

		"""Judge a tap on a voice at the current clock time.

		Every tap plays a click.  Returns ``None`` when no round is in
		progress.
		"""

		if self.state != "playing":
			return None

		voice = self._resolve_voice(voice_name)
		now = self.clock.now()

		self._click(voice, now)

		judgement = self.rhythm.judge(voice, now, self.current_bpm)

		if judgement.hit:
			self.streak += 1
			self.hit_markers[voice].add(judgement.index, now)
			logger.debug(f"Hit {voice}[{judgement.index}] off by {judgement.distance * 1000:.0f} ms")
			self.events.emit("hit", voice, judgement.index, self.streak)
			return TapResult(voice=voice, judgement=judgement, counted=True, streak=self.streak)

		if self.last_miss_time is not None and now - self.last_miss_time <= beatdrill.constants.MISS_DEBOUNCE_SECONDS:
			return TapResult(voice=voice, judgement=judgement, counted=False, streak=self.streak)

		self.last_miss_time = now
		lost = self.streak

		if self.difficulty == "elimination":
			self.events.emit("miss", voice, lost)
			self._fail()
		else:
			self.streak = 0
			self.events.emit("miss", voice, lost)

		return TapResult(voice=voice, judgement=judgement, counted=True, streak=self.streak)

	def _fail (self) -> None:

		self._record_best_streak()
		self.stop()
		self._set_state("failed")

		logger.info(f"Round over: streak {self.streak}, best {self.best_streak}")
		self.events.emit("failed", self.streak, self.best_streak)

	def _record_best_streak (self) -> None:

		if self.streak <= self.best_streak:
			return

		self.best_streaks[self.mode] = self.streak

		if self.progress is not None:
			self.progress.update_best_streak(self.mode, self.streak)

	def _click (self, voice: str, now: float) -> None:

		note, pan = _CLICKS[voice]

		try:
			self.sound.play(
				note,
				now + beatdrill.constants.CLICK_DELAY,
				beatdrill.constants.CLICK_DURATION,
				gain = beatdrill.constants.CLICK_GAIN,
				pan = pan
			)
		except Exception:
			logger.exception("Click playback failed")

	# ------------------------------------------------------------------
	# Preview
	# ------------------------------------------------------------------

	@property
	def is_previewing (self) -> bool:
		return self._preview_until is not None and self.clock.now() < self._preview_until

	def play_preview (self) -> bool:

		"""Play a few cycles of the rhythm at the configured tempo.

		Returns False (and plays nothing) if a preview is already running.
		"""

		if self.is_previewing:
			return False

		now = self.clock.now()

		try:
			for note in beatdrill.rhythm.preview_notes(self.rhythm, self.bpm):
				self.sound.play(
					note.note,
					now + note.offset,
					beatdrill.constants.CLICK_DURATION,
					gain = beatdrill.constants.CLICK_GAIN,
					pan = note.pan
				)
		except Exception:
			logger.exception("Preview playback failed")
			self.sound.cancel_scheduled()
			return False

		self._preview_until = now + beatdrill.rhythm.preview_length(self.rhythm, self.bpm)

		return True

	def stop_preview (self) -> None:

		"""Silence a running preview and drop its pending notes."""

		if self._preview_until is None:
			return

		self._preview_until = None
		self.sound.cancel_scheduled()
