"""
Close handler for tlsserve
Removes the temporary certificate files when the process is interrupted
"""

import os
import signal
import sys
import threading


ARMED = 'armed'
CLEANING = 'cleaning'
TERMINATED = 'terminated'

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def remove_files(paths):
    """Delete every path in order. Failures are ignored so the rest still go."""
    for path in paths:
        try:
            os.remove(path)
        except OSError:
            pass


class CloseHandler:
    """
    Waits on a background thread for SIGINT/SIGTERM, then deletes the
    registered files and exits the process with status 0.

    Handles exactly one shutdown: armed -> cleaning -> terminated.
    """

    def __init__(self, signals=DEFAULT_SIGNALS, exit_func=os._exit):
        self.signals = tuple(signals)
        self.exit_func = exit_func
        self.state = ARMED
        self.paths = []
        self._received = threading.Event()
        self._previous = {}
        self._worker = None

    def register(self, paths):
        """
        Install the signal handlers and start the waiting thread.
        Must be called from the main thread.
        """
        self.paths = list(paths)
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._on_signal)

        self._worker = threading.Thread(target=self._wait_and_clean, name='close-handler', daemon=True)
        self._worker.start()

    def restore(self):
        """Put back the handlers that were active before register()."""
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)
        self._previous = {}

    def _on_signal(self, signum, frame):
        # Later signals find the event already set
        self._received.set()

    def _wait_and_clean(self):
        self._received.wait()

        self.state = CLEANING
        remove_files(self.paths)

        self.state = TERMINATED
        sys.stdout.flush()
        sys.stderr.flush()
        self.exit_func(0)
