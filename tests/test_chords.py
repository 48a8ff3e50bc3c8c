import pytest

import beatdrill.chords


def test_major_triad () -> None:

	"""C-E-G is C major, shown without a suffix."""

	assert beatdrill.chords.detect_chord(["C4", "E4", "G4"]) == "C"


def test_minor_triad () -> None:

	"""A-C-E is A minor."""

	assert beatdrill.chords.detect_chord(["A3", "C4", "E4"]) == "Am"


def test_input_order_does_not_matter () -> None:

	"""The lowest-sounding note is the root whatever order notes arrive in."""

	assert beatdrill.chords.detect_chord(["E4", "G4", "C4"]) == "C"


def test_seventh_chords () -> None:

	"""Four-note chords are matched exactly."""

	assert beatdrill.chords.detect_chord(["G3", "B3", "D4", "F4"]) == "G7"
	assert beatdrill.chords.detect_chord(["C4", "E4", "G4", "B4"]) == "Cmaj7"
	assert beatdrill.chords.detect_chord(["B3", "D4", "F4", "A4"]) == "Bm7♭5"


def test_flat_root_uses_display_accidental () -> None:

	"""Accidentals are shown with music symbols."""

	assert beatdrill.chords.detect_chord(["Bb3", "Db4", "F4", "Ab4"]) == "B♭m7"


def test_power_chord () -> None:

	"""Root and fifth alone make a power chord."""

	assert beatdrill.chords.detect_chord(["F#3", "C#4"]) == "F♯5"


def test_diminished_and_augmented () -> None:

	"""Stacked minor and major thirds."""

	assert beatdrill.chords.detect_chord(["B3", "D4", "F4"]) == "Bdim"
	assert beatdrill.chords.detect_chord(["C4", "E4", "G#4"]) == "Caug"


def test_ninth_chord_spanning_octaves () -> None:

	"""A ninth above the octave is matched by pitch class."""

	assert beatdrill.chords.detect_chord(["C4", "E4", "G4", "B4", "D5"]) == "Cmaj9"


def test_doubled_notes_are_ignored () -> None:

	"""Octave doublings do not change the chord."""

	assert beatdrill.chords.detect_chord(["C3", "C4", "E4", "G4", "C5"]) == "C"


def test_too_few_notes () -> None:

	"""One note (or none) is not a chord."""

	assert beatdrill.chords.detect_chord(["C4"]) is None
	assert beatdrill.chords.detect_chord([]) is None


def test_unrecognised_cluster () -> None:

	"""A cluster with no pattern gives None."""

	assert beatdrill.chords.detect_chord(["C4", "D4", "E4"]) is None


def test_note_to_midi () -> None:

	"""Middle C is 60."""

	assert beatdrill.chords.note_to_midi("C4") == 60
	assert beatdrill.chords.note_to_midi("A4") == 69
	assert beatdrill.chords.note_to_midi("G5") == 79
	assert beatdrill.chords.note_to_midi("C-1") == 0


def test_parse_note_defaults_octave () -> None:

	"""Lower-case letters and missing octaves are accepted."""

	assert beatdrill.chords.parse_note("bb") == ("Bb", 4)
	assert beatdrill.chords.parse_note("F#3") == ("F#", 3)


def test_unknown_note_raises () -> None:

	"""Unrecognised names are rejected."""

	with pytest.raises(ValueError):
		beatdrill.chords.note_to_midi("H4")

	with pytest.raises(ValueError):
		beatdrill.chords.detect_chord(["C4", "X4"])


def test_chord_intervals () -> None:

	"""Intervals are measured up from the lowest note."""

	root, intervals = beatdrill.chords.chord_intervals(["G4", "C4", "E4"])

	assert root == "C4"
	assert intervals == [0, 4, 7]
