"""Keyboard input handling for the terminal UI."""

import sys
import threading
import time
from typing import Optional, Callable
import logging

logger = logging.getLogger(__name__)


class KeyboardInputHandler:
    """Read single raw keypresses from a terminal on a background thread."""

    def __init__(self, callback: Callable[[str], bool]):
        """Initialize keyboard handler.

        Args:
            callback: Function that takes a key and returns True to continue, False to quit
        """
        self.callback = callback
        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the keyboard input handler."""
        if self.running:
            return

        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "KeyboardInputThread"
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        """Stop the keyboard input handler."""
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")

    def _input_loop(self) -> None:
        logger.info("Starting keyboard input loop")
        while self.running:
            key = self._get_key()
            if key:
                logger.debug(f"Key detected: '{key}'")
                if not self.callback(key):
                    logger.info("Callback returned False, breaking input loop")
                    break
            time.sleep(0.05)
        self.running = False
        logger.info("Keyboard input loop ended")

    def _get_key(self) -> Optional[str]:
        """Get key on Unix/Linux/macOS."""
        import select
        import termios
        import tty

        try:
            if not select.select([sys.stdin], [], [], 0.1)[0]:
                return None
            old_settings = termios.tcgetattr(sys.stdin)
            try:
                tty.setraw(sys.stdin.fileno())
                return sys.stdin.read(1).lower()
            finally:
                termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)
        except (OSError, termios.error) as e:
            logger.error(f"Key input error: {e}")
            self.running = False
            return None


class SimpleInputHandler(KeyboardInputHandler):
    """Line-based fallback for non-tty stdin or platforms without termios."""

    def _get_key(self) -> Optional[str]:
        try:
            line = input("> ").strip().lower()
        except EOFError:
            self.running = False
            return "q"
        return line[:1] or None


def create_input_handler(callback: Callable[[str], bool]) -> KeyboardInputHandler:
    """Create the best available input handler for the current terminal."""
    try:
        import termios  # noqa: F401
    except ImportError:
        logger.warning("termios not available, using line input")
        return SimpleInputHandler(callback)

    if not sys.stdin.isatty():
        return SimpleInputHandler(callback)
    return KeyboardInputHandler(callback)
