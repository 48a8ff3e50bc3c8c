"""Cycle timing and tap judging for rhythm training.

A rhythm is one or more *voices* (rings of evenly spaced steps) that share
a single cycle.  The cycle length depends on the tempo and on the rhythm
type:

- ``Polyrhythm(left, right)`` - two voices sharing ``lcm(left, right)``
  slots, so one cycle lasts ``(60 / bpm) * lcm(L, R) / max(L, R)`` seconds.
- ``EuclideanRhythm(hits, steps)`` - a single voice whose rest steps are
  silent, at four steps per beat: ``(60 / bpm) * steps / 4`` seconds.

Taps are judged on the audio clock modulo the cycle length, so the result
matches what a rotating display drawn from the same clock shows.
"""

import dataclasses
import math
import typing

import beatdrill.constants
import beatdrill.sequence_utils


# Absorbs float error so a tap exactly on the tolerance edge counts as a hit.
_BOUNDARY_EPSILON = 1e-9


@dataclasses.dataclass(frozen=True)
class Voice:

	"""
	One ring of steps within a cycle.

	``active[i]`` is True when step ``i`` sounds.  A plain polyrhythm voice
	has every step active.
	"""

	name: str
	subdivisions: int
	active: typing.Tuple[bool, ...]

	def __post_init__ (self) -> None:

		if self.subdivisions <= 0:
			raise ValueError(f"Voice {self.name!r} needs at least one subdivision")

		if len(self.active) != self.subdivisions:
			raise ValueError(f"Voice {self.name!r} has {len(self.active)} flags for {self.subdivisions} subdivisions")


@dataclasses.dataclass(frozen=True)
class TapJudgement:

	"""Outcome of judging one tap against a voice."""

	hit: bool
	index: int
	distance: float


@dataclasses.dataclass(frozen=True)
class PreviewNote:

	"""A note in an audible preview, ``offset`` seconds after the preview starts."""

	offset: float
	note: str
	pan: float


def beat_interval (cycle_duration: float, voice: Voice) -> float:

	"""Seconds between adjacent steps of a voice."""

	return cycle_duration / voice.subdivisions


def beat_times (voice: Voice, cycle_duration: float, cycle_start: float) -> typing.List[typing.Tuple[float, int]]:

	"""Return ``(time, step_index)`` for every sounding step of one cycle.

	Step ``i`` falls at ``cycle_start + i * (cycle_duration / subdivisions)``.
	Rest steps produce no entry.
	"""

	interval = beat_interval(cycle_duration, voice)

	return [
		(cycle_start + i * interval, i)
		for i in range(voice.subdivisions)
		if voice.active[i]
	]


def judge_tap (
	tap_time: float,
	cycle_duration: float,
	voice: Voice,
	tolerance_fraction: float = beatdrill.constants.HIT_TOLERANCE_FRACTION
) -> TapJudgement:

	"""Judge whether a tap lands on a sounding step of a voice.

	The tap's position in the cycle is ``tap_time % cycle_duration``.  The
	nearest sounding step is found using wraparound-aware distance, so a tap
	just before the end of a cycle can match step 0.  The tap is a hit when
	that distance is within ``tolerance_fraction`` of one step interval.

	Parameters:
		tap_time: Audio clock time of the tap
		cycle_duration: Length of one cycle in seconds
		voice: The voice being played
		tolerance_fraction: Allowed deviation as a fraction of a step (default 0.2)

	Returns:
		A ``TapJudgement``.  ``index`` is the matched step, or -1 on a miss.
		``distance`` is the distance to the nearest sounding step (infinite
		when the voice has none).
	"""

	if cycle_duration <= 0:
		raise ValueError("Cycle duration must be positive")

	interval = beat_interval(cycle_duration, voice)
	tolerance = interval * tolerance_fraction
	cycle_position = tap_time % cycle_duration

	closest_index = -1
	closest_distance = math.inf

	for i in range(voice.subdivisions):

		if not voice.active[i]:
			continue

		beat_position = (i * interval) % cycle_duration
		distance = abs(cycle_position - beat_position)

		if distance > cycle_duration / 2:
			distance = cycle_duration - distance

		if distance < closest_distance:
			closest_distance = distance
			closest_index = i

	if closest_index != -1 and closest_distance <= tolerance + _BOUNDARY_EPSILON:
		return TapJudgement(hit=True, index=closest_index, distance=closest_distance)

	return TapJudgement(hit=False, index=-1, distance=closest_distance)


def _check_bpm (bpm: float) -> None:

	if bpm <= 0:
		raise ValueError("BPM must be positive")


class Rhythm:

	"""
	Base class for a set of voices sharing one cycle.
	"""

	kind: str = ""

	def __init__ (self, voices: typing.Sequence[Voice]) -> None:

		self.voices: typing.Dict[str, Voice] = {voice.name: voice for voice in voices}

	def cycle_duration (self, bpm: float) -> float:
		raise NotImplementedError

	def voice (self, name: str) -> Voice:

		"""
		Look up a voice by name.
		"""

		if name not in self.voices:
			raise ValueError(f"Unknown voice {name!r} for {self.kind} rhythm. Expected one of {sorted(self.voices)}")

		return self.voices[name]

	def judge (self, voice_name: str, tap_time: float, bpm: float) -> TapJudgement:

		"""
		Judge a tap on the named voice at the given tempo.
		"""

		return judge_tap(tap_time, self.cycle_duration(bpm), self.voice(voice_name))

	def beat_times (self, cycle_start: float, bpm: float) -> typing.Dict[str, typing.List[typing.Tuple[float, int]]]:

		"""
		Sounding step times of every voice for a cycle starting at ``cycle_start``.
		"""

		duration = self.cycle_duration(bpm)

		return {name: beat_times(voice, duration, cycle_start) for name, voice in self.voices.items()}


class Polyrhythm (Rhythm):

	"""Two evenly divided voices, ``"left"`` and ``"right"``, sharing one cycle.

	Example:
		```python
		rhythm = Polyrhythm(3, 4)
		rhythm.cycle_duration(80)   # 2.25
		```
	"""

	kind = "polyrhythm"

	def __init__ (self, left: int, right: int) -> None:

		if left <= 0 or right <= 0:
			raise ValueError(f"Polyrhythm subdivisions must be positive (got {left}:{right})")

		self.left = left
		self.right = right

		super().__init__([
			Voice("left", left, (True,) * left),
			Voice("right", right, (True,) * right),
		])

	def cycle_duration (self, bpm: float) -> float:

		"""Seconds per cycle: ``(60 / bpm) * lcm(L, R) / max(L, R)``."""

		_check_bpm(bpm)

		cycle_beats = beatdrill.sequence_utils.lcm(self.left, self.right)

		return (60.0 / bpm) * cycle_beats / max(self.left, self.right)

	def __repr__ (self) -> str:
		return f"Polyrhythm({self.left}, {self.right})"


class EuclideanRhythm (Rhythm):

	"""A single ``"euclidean"`` voice built from a Euclidean pattern.

	The pattern is generated once at construction and never changes.
	"""

	kind = "euclidean"

	def __init__ (self, hits: int, steps: int) -> None:

		self.hits = hits
		self.steps = steps
		self.pattern: typing.Tuple[bool, ...] = tuple(beatdrill.sequence_utils.generate_euclidean_pattern(hits, steps))

		super().__init__([Voice("euclidean", steps, self.pattern)])

	def cycle_duration (self, bpm: float) -> float:

		"""Seconds per cycle: ``(60 / bpm) * steps / 4``."""

		_check_bpm(bpm)

		return (60.0 / bpm) * self.steps / beatdrill.constants.STEPS_PER_BEAT

	def __repr__ (self) -> str:
		return f"EuclideanRhythm({self.hits}, {self.steps})"


def ramped_bpm (bpm: float, completed_cycles: int) -> float:

	"""Tempo after ``completed_cycles`` cycles of elimination-mode ramping.

	Every ``BPM_RAMP_EVERY_CYCLES`` completed cycles the tempo rises by
	``BPM_RAMP_INCREMENT``, never above ``MAX_BPM``.

	Example:
		```python
		ramped_bpm(80, 4)    # 82
		ramped_bpm(80, 8)    # 84
		ramped_bpm(80, 999)  # 200
		```
	"""

	for _ in range(completed_cycles // beatdrill.constants.BPM_RAMP_EVERY_CYCLES):
		bpm = min(bpm + beatdrill.constants.BPM_RAMP_INCREMENT, beatdrill.constants.MAX_BPM)

	return bpm


def _preview_cycles (rhythm: Rhythm) -> int:

	"""Cycles needed for about eight beats, at most four."""

	if isinstance(rhythm, EuclideanRhythm):
		per_cycle = max(rhythm.hits, 1)
	elif isinstance(rhythm, Polyrhythm):
		per_cycle = max(rhythm.left, rhythm.right)
	else:
		raise ValueError(f"No preview voicing for {rhythm!r}")

	return min(beatdrill.constants.PREVIEW_MAX_CYCLES, math.ceil(beatdrill.constants.PREVIEW_TARGET_BEATS / per_cycle))


def preview_notes (rhythm: Rhythm, bpm: float) -> typing.List[PreviewNote]:

	"""Build an audible sample of a rhythm, sorted by offset.

	Plays enough cycles for about eight beats, at most four cycles.  The
	Euclidean voice (and the left polyrhythm voice) sounds ``C5``; the right
	polyrhythm voice sounds ``G5``, and the two are panned apart.
	"""

	duration = rhythm.cycle_duration(bpm)
	cycles = _preview_cycles(rhythm)

	if isinstance(rhythm, EuclideanRhythm):
		voicing = {"euclidean": (beatdrill.constants.LEFT_CLICK_NOTE, 0.0)}
	else:
		voicing = {
			"left": (beatdrill.constants.LEFT_CLICK_NOTE, beatdrill.constants.LEFT_PAN),
			"right": (beatdrill.constants.RIGHT_CLICK_NOTE, beatdrill.constants.RIGHT_PAN),
		}

	notes: typing.List[PreviewNote] = []

	for cycle in range(cycles):
		for name, (note, pan) in voicing.items():
			for offset, _ in beat_times(rhythm.voice(name), duration, cycle * duration):
				notes.append(PreviewNote(offset=offset, note=note, pan=pan))

	notes.sort(key=lambda n: n.offset)

	return notes


def preview_length (rhythm: Rhythm, bpm: float) -> float:

	"""Seconds a preview of ``rhythm`` lasts, including a short tail."""

	return rhythm.cycle_duration(bpm) * _preview_cycles(rhythm) + beatdrill.constants.PREVIEW_TAIL_SECONDS
