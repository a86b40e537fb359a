"""Single-key terminal input for the caption screen."""

import sys
import threading
import time
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)

KeyCallback = Callable[[str], bool]


def read_key(timeout: float = 0.1) -> Optional[str]:
    """Return one lower-cased keypress, or None if nothing arrived within ``timeout``."""
    if sys.platform == "win32":
        import msvcrt
        deadline = time.time() + timeout
        while time.time() < deadline:
            if msvcrt.kbhit():
                return msvcrt.getch().decode('utf-8', errors='ignore').lower()
            time.sleep(0.01)
        return None

    import select
    import termios
    import tty

    if not select.select([sys.stdin], [], [], timeout)[0]:
        return None
    old_settings = termios.tcgetattr(sys.stdin)
    try:
        tty.setraw(sys.stdin.fileno())
        return sys.stdin.read(1).lower()
    finally:
        termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)


class KeyboardInputHandler:
    """Reads keys on a daemon thread and hands them to ``callback``.

    The callback returns False to stop reading (quit).
    """

    def __init__(self, callback: KeyCallback, reader: Callable[[], Optional[str]] = read_key):
        self.callback = callback
        self.reader = reader
        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "KeyboardInputThread"
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")

    def _input_loop(self) -> None:
        while self.running:
            try:
                key = self.reader()
            except (OSError, ValueError) as e:
                # stdin is not a terminal
                logger.error(f"Keyboard input unavailable: {e}")
                break
            if not key:
                continue
            logger.debug(f"Key detected: '{key}'")
            if not self.callback(key):
                break
        self.running = False
        logger.info("Keyboard input loop ended")
