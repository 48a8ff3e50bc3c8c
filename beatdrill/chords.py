"""Note names and chord detection.

Module-level constants:
- `NOTE_NAME_TO_PC`: Maps note names (e.g., `"C"`, `"F#"`, `"Bb"`) to pitch classes (0-11)
- `CHORD_PATTERNS`: Chord quality names mapped to sorted pitch-class intervals, in match priority order
- `CHORD_SUFFIX`: Maps chord quality names to display suffixes (e.g., `"m"`, `"7"`)

Note names are a letter, an optional accidental and an octave number, with
C4 = 60 (Middle C): `"C4"`, `"F#3"`, `"Bb5"`.
"""

import re
import typing


NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
}

DEFAULT_OCTAVE = 4

_NOTE_RE = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)?$")

# Ninths are stored reduced to one octave (14 -> 2) since detection
# compares pitch classes.
CHORD_PATTERNS: typing.Dict[str, typing.List[int]] = {
	"major": [0, 4, 7],
	"minor": [0, 3, 7],
	"dim": [0, 3, 6],
	"aug": [0, 4, 8],
	"sus2": [0, 2, 7],
	"sus4": [0, 5, 7],
	"maj7": [0, 4, 7, 11],
	"min7": [0, 3, 7, 10],
	"7": [0, 4, 7, 10],
	"dim7": [0, 3, 6, 9],
	"min7b5": [0, 3, 6, 10],
	"maj9": [0, 2, 4, 7, 11],
	"min9": [0, 2, 3, 7, 10],
	"9": [0, 2, 4, 7, 10],
	"5": [0, 7],
}

CHORD_SUFFIX: typing.Dict[str, str] = {
	"major": "",
	"minor": "m",
	"dim": "dim",
	"aug": "aug",
	"sus2": "sus2",
	"sus4": "sus4",
	"maj7": "maj7",
	"min7": "m7",
	"7": "7",
	"dim7": "dim7",
	"min7b5": "m7♭5",
	"maj9": "maj9",
	"min9": "m9",
	"9": "9",
	"5": "5",
}


def parse_note (note: str) -> typing.Tuple[str, int]:

	"""Split a note name into its pitch name and octave.

	The octave defaults to 4 when omitted.

	Raises:
		ValueError: If the name is not a recognised note.

	Example:
		```python
		parse_note("F#3")   # ("F#", 3)
		parse_note("bb")    # ("Bb", 4)
		```
	"""

	match = _NOTE_RE.match(note.strip())

	if match is None:
		raise ValueError(f"Unknown note name: {note!r}. Expected e.g. 'C4', 'F#3', 'Bb5'.")

	letter, accidental, octave = match.groups()
	name = letter.upper() + accidental

	if name not in NOTE_NAME_TO_PC:
		raise ValueError(f"Unknown note name: {note!r}. Expected e.g. 'C4', 'F#3', 'Bb5'.")

	return name, int(octave) if octave is not None else DEFAULT_OCTAVE


def note_pitch_class (note: str) -> int:

	"""Return the pitch class (0-11) of a note name, ignoring its octave."""

	name, _ = parse_note(note)

	return NOTE_NAME_TO_PC[name]


def note_to_midi (note: str) -> int:

	"""Return the MIDI note number of a note name.

	Example:
		```python
		note_to_midi("C4")   # 60
		note_to_midi("G5")   # 79
		```
	"""

	name, octave = parse_note(note)

	return (octave + 1) * 12 + NOTE_NAME_TO_PC[name]


def format_chord_name (root: str, quality: str) -> str:

	"""Root name with display accidentals, followed by the quality suffix."""

	name, _ = parse_note(root)
	display_root = name.replace("b", "♭").replace("#", "♯")

	return display_root + CHORD_SUFFIX.get(quality, quality)


def chord_intervals (notes: typing.Sequence[str]) -> typing.Tuple[str, typing.List[int]]:

	"""Return the lowest note and the sorted, de-duplicated intervals above it.

	Intervals are reduced modulo 12.
	"""

	if not notes:
		raise ValueError("At least one note is required")

	root = min(notes, key=note_to_midi)
	root_pc = note_pitch_class(root)
	intervals = sorted({(note_pitch_class(note) - root_pc) % 12 for note in notes})

	return root, intervals


def detect_chord (notes: typing.Sequence[str]) -> typing.Optional[str]:

	"""Name the chord formed by a collection of notes.

	The lowest-sounding note is taken as the root.  Intervals above it are
	compared exactly against ``CHORD_PATTERNS`` in order and the first match
	wins.

	Returns:
		The chord name (e.g. ``"C"``, ``"Am7"``, ``"F♯5"``) or ``None``
		when fewer than two notes are given or nothing matches.

	Example:
		```python
		detect_chord(["C4", "E4", "G4"])   # "C"
		detect_chord(["A3", "C4", "E4"])   # "Am"
		```
	"""

	if len(notes) < 2:
		return None

	root, intervals = chord_intervals(notes)

	for quality, pattern in CHORD_PATTERNS.items():
		if intervals == pattern:
			return format_chord_name(root, quality)

	return None
