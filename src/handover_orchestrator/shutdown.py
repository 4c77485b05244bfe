"""Stop requests for the handover loop.

A SIGINT or SIGTERM never interrupts a running persona: it only raises a
flag, and the runner checks that flag before loading the handover record
for the next step.  The record is therefore always left at a step
boundary and the next run resumes from it.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import Any

logger = logging.getLogger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class GracefulShutdown:
    """Stop flag set by SIGINT / SIGTERM and read between workflow steps.

    Usage::

        shutdown = GracefulShutdown()
        shutdown.install()

        # Before each step:
        if shutdown.should_stop:
            ...

    ``reason`` names the signal that asked the run to stop, for the run
    report.
    """

    def __init__(self) -> None:
        self._should_stop = False
        self._handling = False  # reentrancy guard
        self.reason = ""

    @property
    def should_stop(self) -> bool:
        """Whether the run has been asked to stop."""
        return self._should_stop

    @should_stop.setter
    def should_stop(self, value: bool) -> None:
        self._should_stop = value

    def install(self) -> None:
        """Register the stop handler for SIGINT and SIGTERM.

        Prefers ``loop.add_signal_handler`` when called from inside the
        running event loop; Windows and callers without a loop get
        ``signal.signal``.
        """
        if sys.platform != "win32":
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                for sig in _STOP_SIGNALS:
                    loop.add_signal_handler(sig, self.request_stop, sig.name)
                return
        for sig in _STOP_SIGNALS:
            signal.signal(sig, self._signal_handler)

    def request_stop(self, reason: str = "stop requested") -> None:
        """Ask the runner to stop before its next step."""
        if self._handling:
            return
        self._handling = True
        try:
            if not self._should_stop:
                self.reason = reason
                logger.warning(
                    "%s received; the current persona will finish, then the run stops",
                    reason,
                )
            self._should_stop = True
        finally:
            self._handling = False

    def _signal_handler(self, signum: int, frame: Any) -> None:
        self.request_stop(signal.Signals(signum).name)
