"""Serialized, coalescing execution of scan runs.

The coordinator owns a single worker thread that runs one scan at a
time. Scan requests set a single-slot pending flag, so any burst of
requests collapses into at most one scan beyond the one in flight.
Observable state is published as immutable ScanState snapshots.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import replace
from types import MappingProxyType, TracebackType
from typing import TYPE_CHECKING

from dirtygit.scanner.errors import ScanError
from dirtygit.scanner.models import ScanState
from dirtygit.scanner.probe import StatusProbe
from dirtygit.scanner.scan import scan

if TYPE_CHECKING:
    from dirtygit.core.config import ScanConfig

logger = logging.getLogger(__name__)

StateCallback = Callable[[ScanState], None]


class ScanCoordinator:
    """Runs scans on a background thread and publishes their results.

    State machine: Idle -> Scanning -> Idle. Requests are accepted in
    any state. ``current_state()`` may be called from any thread.

    Args:
        config: Configuration used for every scan.
        probe: Status probe passed to each scan run.
        on_change: Called on the worker thread with every new state.
        drop_requests_during_scan: Discard requests that arrive while a
            scan is running instead of running one follow-up scan.

    Example:
        >>> with ScanCoordinator(config) as coordinator:
        ...     coordinator.request_scan()
        ...     coordinator.wait_until_idle()
        ...     state = coordinator.current_state()
    """

    def __init__(
        self,
        config: "ScanConfig",
        *,
        probe: StatusProbe | None = None,
        on_change: StateCallback | None = None,
        drop_requests_during_scan: bool = False,
    ) -> None:
        self._config = config
        self._probe = probe
        self._on_change = on_change
        self._drop_during_scan = drop_requests_during_scan

        self._cond = threading.Condition()
        # Guarded by _cond
        self._pending = False
        self._scanning = False
        self._stopping = False
        self._cancel: threading.Event | None = None
        self._thread: threading.Thread | None = None

        self._state_lock = threading.Lock()
        self._state = ScanState()

    def __enter__(self) -> "ScanCoordinator":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    def start(self) -> None:
        """Start the worker thread. Does nothing if already running."""
        with self._cond:
            if self._thread is not None:
                return
            self._stopping = False
            self._thread = threading.Thread(
                target=self._run,
                name="dirtygit-scan",
                daemon=True,
            )
            self._thread.start()

    def stop(self, cancel: bool = True, timeout: float | None = None) -> None:
        """Stop the worker thread.

        Pending requests are discarded.

        Args:
            cancel: Cancel the scan in flight instead of letting it finish.
            timeout: Maximum seconds to wait for the worker to exit.
        """
        with self._cond:
            self._stopping = True
            self._pending = False
            if cancel and self._cancel is not None:
                self._cancel.set()
            self._cond.notify_all()
            thread = self._thread

        if thread is not None:
            thread.join(timeout)

        with self._cond:
            if thread is not None and not thread.is_alive():
                self._thread = None

    def request_scan(self) -> None:
        """Ask for a scan. Never blocks.

        Replaces any request that has not started yet, so repeated calls
        result in a single pending scan.
        """
        with self._cond:
            self._pending = True
            self._cond.notify_all()

    def current_state(self) -> ScanState:
        """Return the latest published state snapshot."""
        with self._state_lock:
            return self._state

    @property
    def busy(self) -> bool:
        """Check if a scan is in flight."""
        return self.current_state().busy

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until no scan is pending or running.

        Args:
            timeout: Maximum seconds to wait. None waits forever.

        Returns:
            True if the coordinator became idle, False on timeout.
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._pending and not self._scanning,
                timeout,
            )

    def _run(self) -> None:
        """Worker loop: take one request at a time and scan."""
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._pending or self._stopping)
                if self._stopping:
                    return
                self._pending = False
                self._scanning = True
                cancel = threading.Event()
                self._cancel = cancel

            try:
                self._execute(cancel)
            finally:
                with self._cond:
                    self._scanning = False
                    self._cancel = None
                    if self._drop_during_scan:
                        self._pending = False
                    self._cond.notify_all()

    def _execute(self, cancel: threading.Event) -> None:
        """Run one scan and publish its outcome."""
        self._publish(replace(self.current_state(), busy=True, repos_found=0, repos_probed=0))
        started = time.monotonic()

        try:
            result = scan(
                self._config,
                probe=self._probe,
                cancel=cancel,
                on_progress=self._on_progress,
            )
        except ScanError as e:
            logger.warning("Scan failed: %s", e)
            self._finish(error=e, started=started)
        except Exception as e:
            logger.exception("Unexpected error during scan")
            self._finish(error=e, started=started)
        else:
            logger.info("Scan found %d dirty repositories", len(result))
            current = self.current_state()
            self._publish(
                replace(
                    current,
                    busy=False,
                    last_result=MappingProxyType(result),
                    last_error=None,
                    scan_count=current.scan_count + 1,
                    last_duration=time.monotonic() - started,
                )
            )

    def _finish(self, *, error: Exception, started: float) -> None:
        """Publish a failed scan, keeping the previous result."""
        current = self.current_state()
        self._publish(
            replace(
                current,
                busy=False,
                last_error=error,
                scan_count=current.scan_count + 1,
                last_duration=time.monotonic() - started,
            )
        )

    def _on_progress(self, found: int, probed: int) -> None:
        self._publish(replace(self.current_state(), repos_found=found, repos_probed=probed))

    def _publish(self, state: ScanState) -> None:
        with self._state_lock:
            self._state = state
        if self._on_change is not None:
            try:
                self._on_change(state)
            except Exception:
                logger.exception("State change callback failed")
