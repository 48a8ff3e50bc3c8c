import argparse
import asyncio
import logging
import signal
import typing

import beatdrill.clock
import beatdrill.config
import beatdrill.game
import beatdrill.keystroke
import beatdrill.midi_utils
import beatdrill.progress
import beatdrill.sound


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


KEY_POLL_SECONDS = 0.005


def parse_args (argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:

	parser = argparse.ArgumentParser(prog="beatdrill", description="Tap along to polyrhythms and Euclidean rhythms.")
	parser.add_argument("--config", default="beatdrill.yaml", help="YAML config file (default: beatdrill.yaml)")
	parser.add_argument("--debug", action="store_true", help="Log every tap and cycle")

	return parser.parse_args(argv)


def open_sound (config: beatdrill.config.GameConfig, clock: beatdrill.clock.Clock) -> typing.Any:

	"""Open the configured MIDI output, or fall back to silent play."""

	device_name, midi_out = beatdrill.midi_utils.select_output_device(config.midi_device)

	if midi_out is None:
		logger.warning("No MIDI output - playing silently")
		return beatdrill.sound.SilentSoundEngine()

	logger.info(f"Clicks will play on '{device_name}' channel {config.midi_channel + 1}")

	return beatdrill.sound.MidiSoundEngine(midi_out, clock, channel=config.midi_channel)


def attach_log_listeners (game: beatdrill.game.RhythmGame) -> None:

	"""Report game events on the console."""

	game.events.on("hit", lambda voice, index, streak: logger.info(f"HIT  {voice} step {index}  streak {streak}"))
	game.events.on("miss", lambda voice, lost: logger.info(f"MISS {voice}  (streak was {lost})"))
	game.events.on("failed", lambda streak, best: logger.info(f"Failed with streak {streak} (best {best}). Press r to retry, q to quit."))


async def run_game (config: beatdrill.config.GameConfig) -> None:

	"""Play until the player presses ``q`` or the process is interrupted."""

	clock = beatdrill.clock.MonotonicClock()
	sound = open_sound(config, clock)
	progress = beatdrill.progress.ProgressStore(config.expanded_progress_path)

	game = beatdrill.game.RhythmGame(
		config.build_rhythm(),
		bpm = config.bpm,
		difficulty = config.difficulty,
		clock = clock,
		sound = sound,
		progress = progress
	)

	attach_log_listeners(game)

	listener = beatdrill.keystroke.KeystrokeListener()

	if not listener.start():
		logger.error("An interactive terminal is needed to play.")
		return

	stop_event = asyncio.Event()
	loop = asyncio.get_running_loop()

	for sig in (signal.SIGINT, signal.SIGTERM):
		loop.add_signal_handler(sig, stop_event.set)

	if game.mode == "euclidean":
		logger.info("Tap f or space on each sounding step. p previews, q quits.")
	else:
		logger.info("Tap f for the outer ring and j for the inner ring. p previews, q quits.")

	game.start()

	try:
		while not stop_event.is_set():

			for key in listener.drain():

				if key == "q":
					stop_event.set()
				elif key == "p":
					game.play_preview()
				elif key == "r" and game.state != "playing":
					game.start()
				else:
					game.handle_key(key)

			await asyncio.sleep(KEY_POLL_SECONDS)

	finally:
		listener.stop()
		game.exit_to_menu()

		close = getattr(sound, "close", None)
		if close is not None:
			close()

		logger.info(f"Best streak ({game.mode}): {game.best_streak}")


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point for the beatdrill rhythm game.
	"""

	args = parse_args(argv)

	if args.debug:
		logging.getLogger().setLevel(logging.DEBUG)

	config = beatdrill.config.load_config(args.config)

	asyncio.run(run_game(config))


if __name__ == "__main__":
	main()
