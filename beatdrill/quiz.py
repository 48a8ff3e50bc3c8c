"""Waveform and envelope ear-training quiz.

Six levels.  The first three play a waveform and ask which one it was,
with progressively more disguising envelopes.  The last three play a target
envelope and ask the player to rebuild it; a round passes when
``score_envelope()`` meets the level's threshold.

To unlock the next level, identify levels need every answer right and
construct levels need 60% of their rounds passed.
"""

import dataclasses
import logging
import math
import random
import typing

import beatdrill.envelope
import beatdrill.history
import beatdrill.progress


logger = logging.getLogger(__name__)


WAVEFORMS: typing.Tuple[str, ...] = ("sine", "triangle", "square", "sawtooth")

PITCH_OPTIONS: typing.Tuple[str, ...] = ("C3", "E3", "G3", "C4", "E4", "G4", "C5")

DEFAULT_PITCH = "C4"

CONSTRUCT_PASS_RATIO = 0.6

# Waveforms remembered to avoid asking the same one twice running.
RECENT_WAVEFORMS = 1


@dataclasses.dataclass(frozen=True)
class QuizLevel:

	"""
	One quiz level.

	``envelope`` is how identify rounds shape the sound: ``"clean"``,
	``"random"`` or ``"tricky"``.  Construct levels always use a random
	target and score ``params`` against ``pass_threshold``.
	"""

	name: str
	description: str
	mode: str
	waveforms: typing.Tuple[str, ...]
	rounds_to_advance: int
	time_limit: float
	envelope: str = "random"
	params: typing.Tuple[str, ...] = ()
	pass_threshold: int = 0
	randomize_pitch: bool = False


LEVELS: typing.Tuple[QuizLevel, ...] = (
	QuizLevel("Level 1", "All four waveforms", "identify", WAVEFORMS, 8, 12.0, envelope="clean", randomize_pitch=True),
	QuizLevel("Level 2", "Waveforms with envelopes", "identify", WAVEFORMS, 8, 12.0, envelope="random"),
	QuizLevel("Level 3", "Tricky envelopes", "identify", WAVEFORMS, 8, 10.0, envelope="tricky"),
	QuizLevel("Level 4", "Match the envelope (2 params)", "construct", ("sine",), 5, 30.0, params=("attack", "release"), pass_threshold=70),
	QuizLevel("Level 5", "Match the envelope (3 params)", "construct", ("sine",), 5, 35.0, params=("attack", "decay", "sustain"), pass_threshold=65),
	QuizLevel("Level 6", "Full ADSR matching", "construct", WAVEFORMS, 6, 45.0, params=beatdrill.envelope.PARAMETERS, pass_threshold=60),
)


@dataclasses.dataclass
class QuizRound:

	"""The sound the player is hearing and how they answered."""

	number: int
	waveform: str
	envelope: beatdrill.envelope.Envelope
	pitch: str
	answered: bool = False
	correct: bool = False
	score: typing.Optional[int] = None


class WaveformQuiz:

	"""Round and level bookkeeping for the waveform quiz.

	States: ``idle`` -> ``playing`` -> ``answered`` -> (``playing`` |
	``level_complete`` | ``finished``).

	Example:
		```python
		quiz = WaveformQuiz(random.Random(1))
		quiz.start()
		r = quiz.next_round()
		quiz.answer(r.waveform)   # True
		```
	"""

	def __init__ (self, rng: typing.Optional[random.Random] = None, progress: typing.Optional[beatdrill.progress.ProgressStore] = None) -> None:

		self.rng = rng if rng is not None else random.Random()
		self.progress = progress
		self.state = "idle"
		self.level_index = 0
		self.correct = 0
		self.total = 0
		self.round: typing.Optional[QuizRound] = None
		self.unlocked = 0
		self.recent_waveforms: beatdrill.history.RecentHistory[str] = beatdrill.history.RecentHistory(max_size=RECENT_WAVEFORMS)

	@property
	def level (self) -> QuizLevel:
		return LEVELS[min(self.level_index, len(LEVELS) - 1)]

	@property
	def highest_level (self) -> int:

		"""Highest unlocked level index, from this session or saved progress."""

		if self.progress is None:
			return self.unlocked

		return max(self.unlocked, int(self.progress.get("waveform.highest_level", 0)))

	def start (self, level_index: int = 0) -> None:

		"""Start (or restart) play at an unlocked level.

		Raises:
			ValueError: If the level does not exist or is still locked.
		"""

		if not 0 <= level_index < len(LEVELS):
			raise ValueError(f"Level must be 0-{len(LEVELS) - 1} (got {level_index})")

		if level_index > self.highest_level:
			raise ValueError(f"Level {level_index} is locked (highest unlocked is {self.highest_level})")

		self.level_index = level_index
		self._reset_level()
		self.state = "playing"

		logger.info(f"Waveform quiz: {self.level.name} - {self.level.description}")

	def _reset_level (self) -> None:

		self.correct = 0
		self.total = 0
		self.round = None
		self.recent_waveforms = beatdrill.history.RecentHistory(max_size=min(RECENT_WAVEFORMS, len(self.level.waveforms) - 1))

	def next_round (self) -> typing.Optional[QuizRound]:

		"""Pick the next sound, or finish the level once its rounds are used up.

		Returns:
			The new round, or ``None`` when the level is complete (state
			becomes ``level_complete``, or ``finished`` on the last level).
		"""

		if self.state not in ("playing", "answered"):
			raise RuntimeError(f"Cannot start a round from state {self.state!r}")

		if self.round is not None and not self.round.answered:
			raise RuntimeError(f"Round {self.round.number} has not been answered")

		number = (self.round.number + 1) if self.round is not None else 1

		if number > self.level.rounds_to_advance:
			self.state = "finished" if self.level_index >= len(LEVELS) - 1 else "level_complete"
			return None

		level = self.level
		waveform = beatdrill.history.choose_fresh(level.waveforms, self.recent_waveforms, self.rng)

		if level.mode == "construct" or level.envelope == "random":
			envelope = beatdrill.envelope.random_envelope(self.rng)
		elif level.envelope == "tricky":
			envelope = beatdrill.envelope.random_envelope(self.rng, tricky=True)
		else:
			envelope = beatdrill.envelope.ADSR_PRESETS["clean"]

		pitch = self.rng.choice(PITCH_OPTIONS) if level.randomize_pitch else DEFAULT_PITCH

		self.round = QuizRound(number=number, waveform=waveform, envelope=envelope, pitch=pitch)
		self.state = "playing"

		return self.round

	def _current_round (self, mode: str) -> QuizRound:

		if self.state != "playing" or self.round is None:
			raise RuntimeError("No round is waiting for an answer")

		if self.level.mode != mode:
			raise RuntimeError(f"{self.level.name} is a {self.level.mode} level")

		return self.round

	def answer (self, waveform: str) -> bool:

		"""Answer an identify round.  Returns whether it was right."""

		current = self._current_round("identify")

		if waveform not in WAVEFORMS:
			raise ValueError(f"Unknown waveform {waveform!r}. Expected one of {list(WAVEFORMS)}")

		current.answered = True
		current.correct = waveform == current.waveform

		self._record(current.correct)

		return current.correct

	def submit (self, envelope: beatdrill.envelope.Envelope) -> int:

		"""Submit a rebuilt envelope for a construct round.  Returns its score."""

		current = self._current_round("construct")

		score = beatdrill.envelope.score_envelope(envelope, current.envelope, self.level.params)

		current.answered = True
		current.score = score
		current.correct = beatdrill.envelope.passes(score, self.level.pass_threshold)

		self._record(current.correct)

		return score

	def timeout (self) -> None:

		"""Time ran out.  Construct rounds score the default controls; identify rounds count as wrong."""

		if self.level.mode == "construct":
			self.submit(beatdrill.envelope.DEFAULT_USER_ENVELOPE)
			return

		current = self._current_round("identify")
		current.answered = True
		current.correct = False

		self._record(False)

	def _record (self, correct: bool) -> None:

		self.total += 1

		if correct:
			self.correct += 1

		self.state = "answered"

	def can_advance (self) -> bool:

		"""Whether the results so far unlock the next level."""

		if self.level.mode == "construct":
			return self.correct >= math.ceil(self.level.rounds_to_advance * CONSTRUCT_PASS_RATIO)

		return self.correct == self.total

	def finish_level (self) -> bool:

		"""Save progress for the level and move on.

		Returns True if the level was passed.  A passed level unlocks and
		starts the next one (or returns the quiz to ``idle`` after the last
		level).  A failed level starts again from its first round.
		"""

		passed = self.can_advance()
		next_index = min(self.level_index + 1, len(LEVELS) - 1)

		if passed:
			self.unlocked = max(self.unlocked, next_index)

		if passed and self.progress is not None:
			scores = dict(self.progress.get("waveform.level_scores", {}))
			scores[str(self.level_index)] = {"correct": self.correct, "total": self.total}
			self.progress.set("waveform.level_scores", scores)
			self.progress.set("waveform.highest_level", max(self.highest_level, next_index))

		logger.info(f"{self.level.name}: {self.correct}/{self.total} ({'passed' if passed else 'not passed'})")

		if not passed:
			self._reset_level()
			self.state = "playing"
		elif self.level_index >= len(LEVELS) - 1:
			self.state = "idle"
		else:
			self.level_index += 1
			self._reset_level()
			self.state = "playing"

		return passed
