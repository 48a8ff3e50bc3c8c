import math
import typing


RHYTHM_OPTIONS: typing.Tuple[int, ...] = (2, 3, 4, 5, 6, 7)


class EuclideanPreset (typing.NamedTuple):

	"""A named (hits, steps) pair offered to the player."""

	hits: int
	steps: int
	name: str


EUCLIDEAN_PRESETS: typing.Tuple[EuclideanPreset, ...] = (
	EuclideanPreset(3, 8, "E(3,8) - Tresillo"),
	EuclideanPreset(5, 8, "E(5,8) - Cinquillo"),
	EuclideanPreset(7, 8, "E(7,8)"),
	EuclideanPreset(2, 5, "E(2,5)"),
	EuclideanPreset(3, 5, "E(3,5)"),
	EuclideanPreset(4, 7, "E(4,7)"),
	EuclideanPreset(5, 7, "E(5,7)"),
	EuclideanPreset(3, 7, "E(3,7)"),
	EuclideanPreset(5, 9, "E(5,9)"),
	EuclideanPreset(7, 12, "E(7,12)"),
	EuclideanPreset(5, 12, "E(5,12)"),
)


def generate_euclidean_pattern (hits: int, steps: int) -> typing.List[bool]:

	"""Generate a Euclidean rhythm using Bjorklund's algorithm.

	Distributes ``hits`` as evenly as possible across ``steps`` and rotates
	the result so that step 0 is a hit.

	Parameters:
		hits: Number of sounding steps (0 to ``steps``)
		steps: Pattern length (must be positive)

	Raises:
		ValueError: If ``steps`` is not positive, ``hits`` is negative, or
			``hits`` exceeds ``steps``.

	Example:
		```python
		generate_euclidean_pattern(3, 8)
		# [True, False, False, True, False, False, True, False]
		```
	"""

	if steps <= 0:
		raise ValueError(f"Steps must be positive (got {steps})")

	if hits < 0:
		raise ValueError(f"Hits cannot be negative (got {hits})")

	if hits > steps:
		raise ValueError(f"Hits ({hits}) cannot be greater than steps ({steps})")

	if hits == 0:
		return [False] * steps

	if hits == steps:
		return [True] * steps

	pattern: typing.List[bool] = []
	counts: typing.List[int] = []
	remainders: typing.List[int] = [hits]
	divisor = steps - hits
	level = 0

	while remainders[level] > 1:
		counts.append(divisor // remainders[level])
		remainders.append(divisor % remainders[level])
		divisor = remainders[level]
		level += 1

	counts.append(divisor)

	def build (level: int) -> None:
		if level == -1:
			pattern.append(False)
		elif level == -2:
			pattern.append(True)
		else:
			for _ in range(counts[level]):
				build(level - 1)
			if remainders[level] != 0:
				build(level - 2)

	build(level)

	first_hit = pattern.index(True)
	return pattern[first_hit:] + pattern[:first_hit]


def sequence_to_indices (pattern: typing.Sequence[bool]) -> typing.List[int]:

	"""Extract step indices where hits occur in a boolean pattern."""

	return [i for i, v in enumerate(pattern) if v]


def lcm (a: int, b: int) -> int:

	"""Least common multiple of two positive integers."""

	if a <= 0 or b <= 0:
		raise ValueError(f"lcm() needs positive integers (got {a}, {b})")

	return a * b // math.gcd(a, b)
