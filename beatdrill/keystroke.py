"""Single-keystroke tap input from the terminal.

A background thread puts stdin into *cbreak* mode and queues each key as
soon as it is pressed, so taps can be judged without waiting for Enter.
Only POSIX terminals are supported; elsewhere the listener logs a warning
and stays inactive.
"""

import logging
import queue
import select
import sys
import threading
import typing


logger = logging.getLogger(__name__)


POLL_SECONDS = 0.05


def detect_tap_support () -> typing.Tuple[bool, typing.Optional[str]]:

	"""Check whether single-keystroke input can work here.

	Returns:
		``(True, None)`` when supported, otherwise ``(False, reason)``.
	"""

	try:
		import termios  # noqa: PLC0415
	except ImportError:
		return False, "The 'tty' and 'termios' modules are not available on this platform."

	if not sys.stdin.isatty():
		return False, "stdin is not a TTY (running in a pipe or non-interactive context)."

	try:
		fd = sys.stdin.fileno()
		termios.tcsetattr(fd, termios.TCSADRAIN, termios.tcgetattr(fd))
	except (OSError, termios.error) as e:
		return False, f"Terminal settings cannot be changed: {e}"

	return True, None


class KeystrokeListener:

	"""Queue keystrokes from stdin on a daemon thread.

	Terminal settings are restored when the thread exits, even after an
	error.  Drain queued keys from the event loop with :meth:`drain`.

	Example::

		listener = KeystrokeListener()
		listener.start()
		for key in listener.drain():
		    game.handle_key(key)
		listener.stop()
	"""

	def __init__ (self) -> None:

		self._queue: queue.Queue[str] = queue.Queue()
		self._thread: typing.Optional[threading.Thread] = None
		self._running = False

		#: ``True`` while the thread is reading keys.
		self.active = False

	def start (self) -> bool:

		"""Start listening.  Returns False (with a warning) if unsupported."""

		if self._running:
			return True

		supported, reason = detect_tap_support()

		if not supported:
			logger.warning(f"Keyboard taps are not available: {reason}")
			return False

		self._running = True
		self.active = True
		self._thread = threading.Thread(target=self._listen, name="beatdrill-keystroke-listener", daemon=True)
		self._thread.start()

		return True

	def stop (self) -> None:

		"""Ask the thread to exit and wait for it to restore the terminal.

		The thread notices within one poll interval.
		"""

		self._running = False

		thread = self._thread

		if thread is not None and thread.is_alive() and thread is not threading.current_thread():
			thread.join(timeout=POLL_SECONDS * 2)

		self._thread = None

	def drain (self) -> typing.List[str]:

		"""Return every key pressed since the last call, oldest first."""

		keys: typing.List[str] = []

		while True:
			try:
				keys.append(self._queue.get_nowait())
			except queue.Empty:
				return keys

	def _listen (self) -> None:

		import termios  # noqa: PLC0415
		import tty      # noqa: PLC0415

		fd = sys.stdin.fileno()
		old_settings = termios.tcgetattr(fd)

		try:
			tty.setcbreak(fd)

			while self._running:
				ready, _, _ = select.select([sys.stdin], [], [], POLL_SECONDS)
				if ready:
					char = sys.stdin.read(1)
					if char:
						self._queue.put(char)

		except Exception:
			logger.exception("Keystroke listener stopped unexpectedly")

		finally:
			termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
			self._running = False
			self.active = False
