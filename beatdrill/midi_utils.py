import logging
import typing

import mido

logger = logging.getLogger(__name__)


def select_output_device (device_name: typing.Optional[str] = None, prompt: bool = True) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""Select and open a MIDI output device for click playback.

	If ``device_name`` is provided, opens that device.  Otherwise the only
	available device is used, or, when several exist and ``prompt`` is True,
	the player picks one from the console.  With ``prompt`` False the first
	device is used.

	Returns:
		A tuple of ``(device_name, midi_out)`` or ``(None, None)`` on failure.
		Failures are logged, never raised, so the game can fall back to
		silent play.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is not None:
			if device_name not in outputs:
				logger.error(
					f"MIDI output device '{device_name}' not found. "
					f"Available devices: {outputs}"
				)
				return None, None

			selected_name = device_name

		elif len(outputs) == 1 or not prompt:
			selected_name = outputs[0]
			logger.info(f"Using MIDI output '{selected_name}'")

		else:
			selected_name = _prompt_for_device(outputs)

		midi_out = mido.open_output(selected_name)
		logger.info(f"Opened MIDI output: {selected_name}")
		return selected_name, midi_out

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None


def _prompt_for_device (outputs: typing.List[str]) -> str:

	"""Ask the player to choose one of several output devices."""

	print("\nAvailable MIDI output devices:\n")
	for i, name in enumerate(outputs, 1):
		print(f"  {i}. {name}")
	print()

	while True:
		try:
			choice = int(input(f"Select a device (1-{len(outputs)}): "))
			if 1 <= choice <= len(outputs):
				break
		except ValueError:
			pass
		print(f"Enter a number between 1 and {len(outputs)}.")

	selected_name = outputs[choice - 1]

	print("\nTip: To skip this prompt, set the device in your config file:\n")
	print(f"  midi:\n    device: \"{selected_name}\"\n")

	return selected_name
