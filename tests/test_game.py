import typing

import pytest

import beatdrill.game
import beatdrill.progress
import beatdrill.rhythm


def _make_game (clock: typing.Any, sound: typing.Any, difficulty: str = "practice", bpm: float = 60, **kwargs: typing.Any) -> beatdrill.game.RhythmGame:

	"""A 4:4 game: at 60 BPM each cycle is 4.0s with a step every second."""

	return beatdrill.game.RhythmGame(
		beatdrill.rhythm.Polyrhythm(4, 4),
		bpm = bpm,
		difficulty = difficulty,
		clock = clock,
		sound = sound,
		autoschedule = False,
		**kwargs
	)


def _record (game: beatdrill.game.RhythmGame, event_name: str) -> typing.List[typing.Tuple[typing.Any, ...]]:

	calls: typing.List[typing.Tuple[typing.Any, ...]] = []
	game.events.on(event_name, lambda *args: calls.append(args))
	return calls


def test_new_game_is_in_menu (clock: typing.Any, sound: typing.Any) -> None:

	"""Nothing runs until start()."""

	game = _make_game(clock, sound)

	assert game.state == "menu"
	assert game.mode == "polyrhythm"
	assert game.cycle_count == 0
	assert game.tick() is None


def test_invalid_construction (clock: typing.Any, sound: typing.Any) -> None:

	"""Tempo and difficulty are validated up front."""

	with pytest.raises(ValueError):
		_make_game(clock, sound, bpm=0)

	with pytest.raises(ValueError):
		_make_game(clock, sound, difficulty="hard")


def test_start_begins_first_cycle (clock: typing.Any, sound: typing.Any) -> None:

	"""start() enters playing and lays out a cycle slightly in the future."""

	game = _make_game(clock, sound)
	states = _record(game, "state")
	cycles = _record(game, "cycle")

	game.start()

	assert game.state == "playing"
	assert states == [("playing",)]
	assert game.cycle_count == 1
	assert game.cycle_start_time == pytest.approx(10.1)
	assert cycles == [(1, pytest.approx(10.1))]
	assert [index for _, index in game.beats["left"]] == [0, 1, 2, 3]


def test_start_while_playing_is_ignored (clock: typing.Any, sound: typing.Any) -> None:

	"""A second start() does not reset the round."""

	game = _make_game(clock, sound)
	game.start()

	clock.set(12.0)
	game.tap("left")
	game.start()

	assert game.streak == 1
	assert game.cycle_count == 1


def test_tick_reports_time_to_cycle_end (clock: typing.Any, sound: typing.Any) -> None:

	"""tick() returns the delay until the current cycle finishes."""

	game = _make_game(clock, sound)
	game.start()

	assert game.tick() == pytest.approx(4.1)

	clock.advance(1.0)

	assert game.tick() == pytest.approx(3.1)
	assert game.cycle_count == 1


def test_tick_rolls_over_cycles (clock: typing.Any, sound: typing.Any) -> None:

	"""Once a cycle has ended, tick() starts the next one."""

	game = _make_game(clock, sound)
	game.start()

	clock.set(game.cycle_start_time + game.cycle_duration)
	delay = game.tick()

	assert game.cycle_count == 2
	assert game.completed_cycles == 1
	assert game.cycle_start_time == pytest.approx(clock.now() + 0.1)
	assert delay == pytest.approx(4.1)


def test_practice_hits_build_streak (clock: typing.Any, sound: typing.Any) -> None:

	"""On-beat taps extend the streak."""

	game = _make_game(clock, sound)
	hits = _record(game, "hit")
	game.start()

	clock.set(12.0)
	first = game.tap("left")

	clock.set(13.0)
	second = game.tap("right")

	assert first is not None and first.hit and first.counted
	assert second is not None and second.streak == 2
	assert hits == [("left", 0, 1), ("right", 1, 2)]


def test_practice_miss_resets_streak (clock: typing.Any, sound: typing.Any) -> None:

	"""A practice miss zeroes the streak but play continues."""

	game = _make_game(clock, sound)
	misses = _record(game, "miss")
	game.start()

	clock.set(12.0)
	game.tap("left")

	clock.set(12.5)
	result = game.tap("left")

	assert result is not None
	assert result.hit is False
	assert result.counted is True
	assert game.streak == 0
	assert game.state == "playing"
	assert misses == [("left", 1)]


def test_misses_are_debounced (clock: typing.Any, sound: typing.Any) -> None:

	"""A second miss within 200ms of the last one is not counted."""

	game = _make_game(clock, sound)
	misses = _record(game, "miss")
	game.start()

	clock.set(12.5)
	game.tap("left")

	clock.set(12.6)
	swallowed = game.tap("left")

	clock.set(14.5)
	counted = game.tap("left")

	assert swallowed is not None and swallowed.counted is False
	assert counted is not None and counted.counted is True
	assert len(misses) == 2


def test_debounce_resets_on_start (clock: typing.Any, sound: typing.Any) -> None:

	"""A miss right after restarting is counted."""

	game = _make_game(clock, sound, difficulty="elimination")
	game.start()

	clock.set(12.5)
	game.tap("left")
	assert game.state == "failed"

	clock.set(12.55)
	game.start()
	game.tap("left")

	assert game.state == "failed"


def test_elimination_miss_fails_round (clock: typing.Any, sound: typing.Any) -> None:

	"""In elimination a counted miss ends the round and stops the cycles."""

	game = _make_game(clock, sound, difficulty="elimination")
	misses = _record(game, "miss")
	failures = _record(game, "failed")
	game.start()

	clock.set(12.0)
	game.tap("left")
	clock.set(13.0)
	game.tap("left")

	clock.set(13.5)
	game.tap("right")

	assert game.state == "failed"
	assert misses == [("right", 2)]
	assert failures == [(2, 2)]
	assert game.best_streak == 2
	assert game.cycle_count == 0
	assert game.tick() is None


def test_taps_outside_play_are_ignored (clock: typing.Any, sound: typing.Any) -> None:

	"""No judging, and no click, unless a round is running."""

	game = _make_game(clock, sound)

	assert game.tap("left") is None
	assert sound.played == []


def test_tap_plays_panned_click (clock: typing.Any, sound: typing.Any) -> None:

	"""Left taps click C5 on the left, right taps G5 on the right."""

	game = _make_game(clock, sound)
	game.start()

	clock.set(12.0)
	game.tap("left")
	game.tap("right")

	left_note, left_time, left_duration, left_gain, left_pan = sound.played[0]
	right_note, _, _, _, right_pan = sound.played[1]

	assert left_note == "C5"
	assert left_time == pytest.approx(12.01)
	assert left_duration == pytest.approx(0.05)
	assert left_gain == pytest.approx(0.6)
	assert left_pan == pytest.approx(-0.8)
	assert right_note == "G5"
	assert right_pan == pytest.approx(0.8)


def test_miss_also_clicks (clock: typing.Any, sound: typing.Any) -> None:

	"""Every tap gives audible feedback."""

	game = _make_game(clock, sound)
	game.start()

	clock.set(12.5)
	game.tap("left")

	assert len(sound.played) == 1


def test_elimination_tempo_ramps (clock: typing.Any, sound: typing.Any) -> None:

	"""+2 BPM after every fourth completed cycle."""

	game = _make_game(clock, sound, difficulty="elimination", bpm=80)
	bpm_changes = _record(game, "bpm")
	game.start()

	for _ in range(8):
		clock.set(game.cycle_start_time + game.cycle_duration)
		game.tick()

		if game.completed_cycles == 4:
			assert game.current_bpm == 82

	assert game.current_bpm == 84
	assert bpm_changes == [(82,), (84,)]


def test_tempo_ramp_caps_at_200 (clock: typing.Any, sound: typing.Any) -> None:

	"""The ramp never passes 200 BPM."""

	game = _make_game(clock, sound, difficulty="elimination", bpm=199)
	bpm_changes = _record(game, "bpm")
	game.start()

	for _ in range(12):
		clock.set(game.cycle_start_time + game.cycle_duration)
		game.tick()

	assert game.current_bpm == 200
	assert bpm_changes == [(200,)]


def test_practice_tempo_is_steady (clock: typing.Any, sound: typing.Any) -> None:

	"""Practice never ramps."""

	game = _make_game(clock, sound, bpm=80)
	game.start()

	for _ in range(8):
		clock.set(game.cycle_start_time + game.cycle_duration)
		game.tick()

	assert game.current_bpm == 80


def test_restart_resets_tempo (clock: typing.Any, sound: typing.Any) -> None:

	"""Each round starts at the configured tempo."""

	game = _make_game(clock, sound, difficulty="elimination", bpm=80)
	game.start()

	for _ in range(4):
		clock.set(game.cycle_start_time + game.cycle_duration)
		game.tick()

	game.exit_to_menu()
	game.start()

	assert game.current_bpm == 80


def test_hit_markers_flash_briefly (clock: typing.Any, sound: typing.Any) -> None:

	"""A hit step stays marked for 200ms."""

	game = _make_game(clock, sound)
	game.start()

	clock.set(12.0)
	game.tap("left")

	assert game.hit_indices("left") == {0}
	assert game.hit_indices("right") == set()

	clock.set(12.1)
	assert game.hit_indices() == {0}

	clock.set(12.3)
	assert game.hit_indices("left") == set()


def test_hit_markers_clear_on_new_cycle (clock: typing.Any, sound: typing.Any) -> None:

	"""Markers do not carry over into the next cycle."""

	game = _make_game(clock, sound)
	game.start()

	clock.set(14.1)
	game.tap("left")
	assert game.hit_indices("left") == {0}

	game.tick()

	assert game.cycle_count == 2
	assert game.hit_indices("left") == set()


def test_handle_key_polyrhythm (clock: typing.Any, sound: typing.Any) -> None:

	"""f taps left, j taps right, anything else is ignored."""

	game = _make_game(clock, sound)
	game.start()
	clock.set(12.0)

	left = game.handle_key("F")
	right = game.handle_key("j")

	assert left is not None and left.voice == "left"
	assert right is not None and right.voice == "right"
	assert game.handle_key("x") is None
	assert game.handle_key(" ") is None


def test_handle_key_euclidean (clock: typing.Any, sound: typing.Any) -> None:

	"""f and space both tap the single Euclidean voice."""

	game = beatdrill.game.RhythmGame(
		beatdrill.rhythm.EuclideanRhythm(3, 8),
		bpm = 60,
		clock = clock,
		sound = sound,
		autoschedule = False
	)

	game.start()

	# 2.0s cycle; 12.0 is step 0.
	clock.set(12.0)
	result = game.handle_key(" ")

	assert game.mode == "euclidean"
	assert result is not None
	assert result.voice == "euclidean"
	assert result.hit is True
	assert game.handle_key("j") is None


def test_default_voice (clock: typing.Any, sound: typing.Any) -> None:

	"""tap() with no voice uses the left (or only) voice."""

	game = _make_game(clock, sound)
	game.start()
	clock.set(12.0)

	result = game.tap()

	assert result is not None
	assert result.voice == "left"


def test_exit_to_menu (clock: typing.Any, sound: typing.Any) -> None:

	"""Leaving a round clears cycle tracking."""

	game = _make_game(clock, sound)
	states = _record(game, "state")
	game.start()

	game.exit_to_menu()

	assert game.state == "menu"
	assert game.cycle_count == 0
	assert game.beats == {}
	assert states == [("playing",), ("menu",)]


def test_configure_only_between_rounds (clock: typing.Any, sound: typing.Any) -> None:

	"""The rhythm cannot change mid-round."""

	game = _make_game(clock, sound)
	game.start()

	with pytest.raises(RuntimeError):
		game.configure(bpm=100)

	game.exit_to_menu()
	game.configure(rhythm=beatdrill.rhythm.EuclideanRhythm(5, 8), bpm=100, difficulty="elimination")

	assert game.mode == "euclidean"
	assert game.bpm == 100
	assert game.difficulty == "elimination"
	assert set(game.hit_markers) == {"euclidean"}


def test_best_streak_is_saved (clock: typing.Any, sound: typing.Any, tmp_path: typing.Any) -> None:

	"""A new elimination record is written to the progress store."""

	path = tmp_path / "progress.json"
	game = _make_game(clock, sound, difficulty="elimination", progress=beatdrill.progress.ProgressStore(path))
	game.start()

	clock.set(12.0)
	game.tap("left")
	clock.set(12.5)
	game.tap("left")

	assert beatdrill.progress.ProgressStore(path).best_streak("polyrhythm") == 1


def test_best_streak_is_loaded (clock: typing.Any, sound: typing.Any, tmp_path: typing.Any) -> None:

	"""Saved records are read at construction, and a lower streak leaves them alone."""

	store = beatdrill.progress.ProgressStore(tmp_path / "progress.json")
	store.update_best_streak("polyrhythm", 5)

	game = _make_game(clock, sound, difficulty="elimination", progress=store)
	failures = _record(game, "failed")

	assert game.best_streak == 5

	game.start()
	clock.set(12.0)
	game.tap("left")
	clock.set(12.5)
	game.tap("left")

	assert failures == [(1, 5)]
	assert store.best_streak("polyrhythm") == 5


def test_preview_plays_once_at_a_time (clock: typing.Any, sound: typing.Any) -> None:

	"""A preview cannot overlap itself."""

	game = _make_game(clock, sound)

	assert game.play_preview() is True
	assert len(sound.played) == 16
	assert game.is_previewing is True
	assert game.play_preview() is False

	# Two 4.0s cycles plus the tail.
	clock.advance(8.2)

	assert game.is_previewing is False
	assert game.play_preview() is True


def test_stop_preview_cancels_notes (clock: typing.Any, sound: typing.Any) -> None:

	"""Stopping a preview cancels its scheduled notes once."""

	game = _make_game(clock, sound)

	game.stop_preview()
	assert sound.cancel_count == 0

	game.play_preview()
	game.stop_preview()
	game.stop_preview()

	assert sound.cancel_count == 1
	assert game.is_previewing is False


def test_failing_sound_does_not_break_taps (clock: typing.Any) -> None:

	"""A broken sound engine is logged and the tap is still judged."""

	class BrokenSound:

		def play (self, *args: typing.Any, **kwargs: typing.Any) -> None:
			raise RuntimeError("device unplugged")

		def cancel_scheduled (self) -> None:
			pass

	game = _make_game(clock, BrokenSound())
	game.start()
	clock.set(12.0)

	result = game.tap("left")

	assert result is not None
	assert result.hit is True
