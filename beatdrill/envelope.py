"""ADSR envelopes and similarity scoring.

An envelope is four numbers: attack, decay and release times in seconds and
a sustain level from 0 to 1.  ``score_envelope()`` compares a player's
envelope with a target over a chosen subset of the four parameters and
reports a similarity from 0 to 100.
"""

import dataclasses
import math
import random
import typing


PARAMETERS: typing.Tuple[str, ...] = ("attack", "decay", "sustain", "release")

# Differences are divided by these before clamping to 1.
SCORE_RANGES: typing.Dict[str, float] = {
	"attack": 1.0,
	"decay": 0.6,
	"sustain": 1.0,
	"release": 1.0,
}

SUSTAIN_HOLD_SECONDS = 0.5


@dataclasses.dataclass(frozen=True)
class Envelope:

	"""
	Attack/decay/release times (seconds) and sustain level (0-1).
	"""

	attack: float
	decay: float
	sustain: float
	release: float

	def __post_init__ (self) -> None:

		for name in PARAMETERS:
			if getattr(self, name) < 0:
				raise ValueError(f"Envelope {name} cannot be negative (got {getattr(self, name)})")

	def as_dict (self) -> typing.Dict[str, float]:
		return dataclasses.asdict(self)


ADSR_PRESETS: typing.Dict[str, Envelope] = {
	"clean": Envelope(attack=0.001, decay=0.1, sustain=1.0, release=0.1),
	"pluck": Envelope(attack=0.001, decay=0.2, sustain=0.3, release=0.3),
	"pad": Envelope(attack=0.5, decay=0.3, sustain=0.7, release=0.8),
	"perc": Envelope(attack=0.001, decay=0.1, sustain=0.0, release=0.1),
	"swell": Envelope(attack=0.8, decay=0.2, sustain=0.6, release=0.5),
	"brass": Envelope(attack=0.1, decay=0.1, sustain=0.8, release=0.2),
}

# Presets whose shapes hide the character of the waveform underneath.
TRICKY_PRESETS: typing.Tuple[str, ...] = ("pluck", "pad", "perc", "swell", "brass")

# Starting position of the player's controls in construct rounds.
DEFAULT_USER_ENVELOPE = Envelope(attack=0.1, decay=0.2, sustain=0.7, release=0.3)


def score_envelope (user: Envelope, target: Envelope, params: typing.Sequence[str] = PARAMETERS) -> int:

	"""Score how closely ``user`` matches ``target``, from 0 to 100.

	For each parameter in ``params`` the absolute difference is divided by
	its ``SCORE_RANGES`` entry and clamped to 1.  The score is
	``(1 - mean) * 100`` rounded half up.

	Raises:
		ValueError: If ``params`` is empty or names an unknown parameter.

	Example:
		```python
		target = Envelope(0.5, 0.3, 0.7, 0.5)
		score_envelope(target, target)                                  # 100
		score_envelope(Envelope(0.0, 0.3, 0.7, 0.5), target, ["attack"])  # 50
		```
	"""

	if not params:
		raise ValueError("At least one envelope parameter must be scored")

	total = 0.0

	for param in params:

		if param not in SCORE_RANGES:
			raise ValueError(f"Unknown envelope parameter {param!r}. Expected one of {list(PARAMETERS)}")

		diff = abs(getattr(user, param) - getattr(target, param))
		total += min(diff / SCORE_RANGES[param], 1.0)

	# Halves round up.
	return math.floor((1 - total / len(params)) * 100 + 0.5)


def passes (score: int, threshold: int) -> bool:

	"""A construct round passes when the score meets the level threshold."""

	return score >= threshold


def random_envelope (rng: random.Random, tricky: bool = False) -> Envelope:

	"""Draw a target envelope.

	``tricky`` picks one of the character-masking presets; otherwise each
	parameter is drawn uniformly from a playable range.
	"""

	if tricky:
		return ADSR_PRESETS[rng.choice(TRICKY_PRESETS)]

	return Envelope(
		attack = rng.random() * 0.8 + 0.001,
		decay = rng.random() * 0.5 + 0.05,
		sustain = rng.random() * 0.8 + 0.2,
		release = rng.random() * 0.8 + 0.1,
	)


def sound_duration (envelope: Envelope) -> float:

	"""Seconds a note shaped by ``envelope`` needs: A + D + a half-second hold + R."""

	return envelope.attack + envelope.decay + SUSTAIN_HOLD_SECONDS + envelope.release
