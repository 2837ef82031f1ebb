"""Signal-driven early termination running beside the main stage flow."""

from __future__ import annotations

import contextvars
import logging
import os
import signal
import threading
from contextlib import AbstractContextManager
from types import FrameType
from typing import Any, Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

INTERRUPT_EXIT_CODE = 1


def _hard_exit(code: int) -> None:
    logging.shutdown()
    os._exit(code)


class InterruptListener(AbstractContextManager["InterruptListener"]):
    """Run ``on_interrupt`` on a background thread when SIGINT/SIGTERM arrives.

    The signal handler only sets an event. A daemon thread waits for it,
    calls ``on_interrupt`` and then ``terminate(exit_code)``. The main flow
    polls ``stop_requested()`` between stages; commands and poll iterations
    already in flight keep running until ``terminate`` ends the process.
    """

    def __init__(
        self,
        on_interrupt: Callable[[], Any],
        *,
        terminate: Callable[[int], None] = _hard_exit,
        signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM),
        exit_code: int = INTERRUPT_EXIT_CODE,
    ) -> None:
        self._on_interrupt = on_interrupt
        self._terminate = terminate
        self._signals = tuple(signals)
        self._exit_code = exit_code
        self._event = threading.Event()
        self._closed = False
        self._prev_handlers: Dict[int, Any] = {}
        self._thread: Optional[threading.Thread] = None

    def stop_requested(self) -> bool:
        return self._event.is_set()

    def request_stop(self) -> None:
        """Trip the listener as if a signal had arrived."""
        self._event.set()

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        logger.warning("Received signal %s; tearing down", signum)
        self.request_stop()

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread; signal handlers not installed")
            return
        for sig in self._signals:
            try:
                self._prev_handlers[sig] = signal.getsignal(sig)
                signal.signal(sig, self._handle_signal)
            except (ValueError, OSError):
                continue

    def _listen(self) -> None:
        self._event.wait()
        if self._closed:
            return
        logger.info("Run stopped. Tearing down.")
        try:
            self._on_interrupt()
        except Exception:
            logger.exception("Teardown after interrupt failed")
        self._terminate(self._exit_code)

    def start(self) -> "InterruptListener":
        self._install_signal_handlers()
        self._thread = threading.Thread(
            target=contextvars.copy_context().run,
            args=(self._listen,),
            name="interrupt-listener",
            daemon=True,
        )
        self._thread.start()
        return self

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def restore(self) -> None:
        """Restore original signal handlers."""
        for sig, handler in self._prev_handlers.items():
            try:
                signal.signal(sig, handler)
            except (ValueError, OSError):
                continue
        self._prev_handlers.clear()

    def close(self) -> None:
        """Release the listener thread without running the interrupt path."""
        self.restore()
        if not self._event.is_set():
            self._closed = True
            self._event.set()

    def __enter__(self) -> "InterruptListener":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
