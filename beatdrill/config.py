"""YAML game configuration.

Example ``beatdrill.yaml``::

	game:
	  mode: euclidean          # or polyrhythm
	  left: 3                  # polyrhythm voices
	  right: 4
	  euclidean_preset: 0      # index into EUCLIDEAN_PRESETS
	  bpm: 80
	  difficulty: elimination  # or practice (easy / hard also accepted)
	midi:
	  device: "IAC Driver Bus 1"
	  channel: 0
	progress:
	  path: ~/.beatdrill/progress.json

Every key is optional.  A missing file means all defaults.
"""

import dataclasses
import logging
import os
import typing

import yaml

import beatdrill.constants
import beatdrill.game
import beatdrill.rhythm
import beatdrill.sequence_utils


logger = logging.getLogger(__name__)


MODES: typing.Tuple[str, ...] = ("polyrhythm", "euclidean")

DIFFICULTY_ALIASES: typing.Dict[str, str] = {
	"easy": "practice",
	"hard": "elimination",
}


@dataclasses.dataclass
class GameConfig:

	"""
	Settings for a rhythm game session and its devices.
	"""

	mode: str = "polyrhythm"
	left: int = 3
	right: int = 4
	euclidean_preset: int = 0
	bpm: float = beatdrill.constants.DEFAULT_BPM
	difficulty: str = "practice"
	midi_device: typing.Optional[str] = None
	midi_channel: int = 0
	progress_path: str = "~/.beatdrill/progress.json"

	def __post_init__ (self) -> None:

		self.difficulty = DIFFICULTY_ALIASES.get(self.difficulty, self.difficulty)

		if self.mode not in MODES:
			raise ValueError(f"Unknown mode {self.mode!r}. Expected one of {list(MODES)}")

		if self.difficulty not in beatdrill.game.DIFFICULTIES:
			raise ValueError(f"Unknown difficulty {self.difficulty!r}. Expected one of {list(beatdrill.game.DIFFICULTIES)}")

		for name in ("left", "right"):
			value = getattr(self, name)
			if value not in beatdrill.sequence_utils.RHYTHM_OPTIONS:
				raise ValueError(f"{name} must be one of {list(beatdrill.sequence_utils.RHYTHM_OPTIONS)} (got {value})")

		if not 0 <= self.euclidean_preset < len(beatdrill.sequence_utils.EUCLIDEAN_PRESETS):
			raise ValueError(f"euclidean_preset must be 0-{len(beatdrill.sequence_utils.EUCLIDEAN_PRESETS) - 1} (got {self.euclidean_preset})")

		if not 0 < self.bpm <= beatdrill.constants.MAX_BPM:
			raise ValueError(f"bpm must be between 0 and {beatdrill.constants.MAX_BPM} (got {self.bpm})")

		if not 0 <= self.midi_channel <= 15:
			raise ValueError(f"MIDI channel must be 0-15 (got {self.midi_channel})")

	def build_rhythm (self) -> beatdrill.rhythm.Rhythm:

		"""The rhythm this configuration selects."""

		if self.mode == "euclidean":
			preset = beatdrill.sequence_utils.EUCLIDEAN_PRESETS[self.euclidean_preset]
			return beatdrill.rhythm.EuclideanRhythm(preset.hits, preset.steps)

		return beatdrill.rhythm.Polyrhythm(self.left, self.right)

	@property
	def expanded_progress_path (self) -> str:
		return os.path.expanduser(self.progress_path)


def load_config (config_path: str = "beatdrill.yaml") -> GameConfig:

	"""Load game configuration from a YAML file.

	A missing file logs a warning and returns the defaults.  Invalid values
	raise ``ValueError``.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return GameConfig()

	with open(config_path, "r") as f:
		data = yaml.safe_load(f) or {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	return config_from_dict(data)


def config_from_dict (data: typing.Dict[str, typing.Any]) -> GameConfig:

	"""Build a ``GameConfig`` from the nested ``game`` / ``midi`` / ``progress`` sections."""

	game = data.get("game") or {}
	midi = data.get("midi") or {}
	progress = data.get("progress") or {}

	kwargs: typing.Dict[str, typing.Any] = {}

	for key in ("mode", "left", "right", "euclidean_preset", "bpm", "difficulty"):
		if key in game:
			kwargs[key] = game[key]

	if "device" in midi:
		kwargs["midi_device"] = midi["device"]

	if "channel" in midi:
		kwargs["midi_channel"] = midi["channel"]

	if "path" in progress:
		kwargs["progress_path"] = progress["path"]

	return GameConfig(**kwargs)
