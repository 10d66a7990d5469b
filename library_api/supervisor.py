"""
Process-wide handling of failures nothing else caught.

The hooks are global interpreter state, so they are installed and removed
explicitly by whoever owns the process (the ``python -m library_api``
entrypoint), never as a side effect of building the app.
"""
from __future__ import annotations

import logging
import os
import signal
import sys
import threading


class ProcessSupervisor:
    def __init__(self, exit_on_error: bool = False, logger: logging.Logger | None = None):
        self.exit_on_error = exit_on_error
        self.logger = logger or logging.getLogger(__name__)
        self.installed = False
        self._previous = {}

    def install(self):
        if self.installed:
            return self
        self._previous = {
            "excepthook": sys.excepthook,
            "threading_excepthook": threading.excepthook,
            signal.SIGTERM: signal.getsignal(signal.SIGTERM),
            signal.SIGINT: signal.getsignal(signal.SIGINT),
        }
        sys.excepthook = self.handle_exception
        threading.excepthook = self.handle_thread_exception
        signal.signal(signal.SIGTERM, self.handle_signal)
        signal.signal(signal.SIGINT, self.handle_signal)
        self.installed = True
        self.logger.debug("Process supervisor installed (exit_on_error=%s)", self.exit_on_error)
        return self

    def uninstall(self):
        if not self.installed:
            return
        sys.excepthook = self._previous.pop("excepthook")
        threading.excepthook = self._previous.pop("threading_excepthook")
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous = {}
        self.installed = False

    def handle_exception(self, exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            self.logger.info("Interrupted, shutting down")
            sys.exit(0)
        self.logger.critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback))
        if self.exit_on_error:
            sys.exit(1)

    def handle_thread_exception(self, args):
        if args.exc_type is SystemExit:
            return
        thread_name = args.thread.name if args.thread else "unknown"
        self.logger.critical(
            "Unhandled exception in thread %s",
            thread_name,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        if self.exit_on_error:
            # sys.exit would only end the failing thread
            os._exit(1)

    def handle_signal(self, signum, frame):
        self.logger.info("Received %s, shutting down", signal.Signals(signum).name)
        sys.exit(0)
