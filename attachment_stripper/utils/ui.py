"""
UI utilities for the CLI.
Provides a loading spinner for slow mailbox calls.
"""

import sys
import time
import threading
import itertools

from .colors import Colors


class Spinner:
    """
    Displays a loading spinner in the terminal.

    Falls back to a single progress line when stdout is not a TTY.
    """
    def __init__(self, message: str = "Loading", delay: float = 0.1, persist: bool = True):
        self.spinner = itertools.cycle(['⠋', '⠙', '⠹', '⠸', '⠼', '⠴', '⠦', '⠧', '⠇', '⠏'])
        self.message = message
        self.delay = delay
        self.persist = persist
        self.busy = False
        self.thread = None

    def _spin(self):
        while self.busy:
            # \r returns to line start, \033[K clears the rest of the line
            sys.stdout.write(f"\r{next(self.spinner)} {self.message}   \033[K")
            sys.stdout.flush()
            time.sleep(self.delay)

    def __enter__(self):
        if sys.stdout.isatty():
            self.busy = True
            self.thread = threading.Thread(target=self._spin, daemon=True)
            self.thread.start()
        else:
            print(f"{self.message}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not sys.stdout.isatty():
            return

        self.busy = False
        if self.thread:
            self.thread.join()

        final_message = ""
        if exc_type is not None:
            final_message = f"{Colors.RED}✘{Colors.RESET} {self.message}\n"
        elif self.persist:
            final_message = f"{Colors.GREEN}✔{Colors.RESET} {self.message}\n"
        sys.stdout.write(f"\r\033[K{final_message}")
        sys.stdout.flush()
