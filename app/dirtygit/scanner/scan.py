"""A single scan run: walk, probe, filter and aggregate.

Repositories are discovered by the walker threads, probed on a bounded
thread pool, and merged into the result by the calling thread only.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

from dirtygit.scanner.errors import ScanCancelledError, ScanError
from dirtygit.scanner.excluder import Excluder
from dirtygit.scanner.models import GitStatus, RepoStatus, ScanResult
from dirtygit.scanner.probe import GitStatusProbe, StatusProbe
from dirtygit.scanner.walker import walk

if TYPE_CHECKING:
    from dirtygit.core.config import ScanConfig

logger = logging.getLogger(__name__)

__all__ = ["ProgressCallback", "ScanCancelledError", "ScanError", "scan"]

# Called with (repositories found, repositories probed)
ProgressCallback = Callable[[int, int], None]

_Probed = tuple[str, GitStatus, float]


def scan(
    config: "ScanConfig",
    *,
    probe: StatusProbe | None = None,
    cancel: threading.Event | None = None,
    on_progress: ProgressCallback | None = None,
) -> ScanResult:
    """Find all dirty git repositories described by ``config``.

    Args:
        config: Roots, exclusions and symlink policy for this run.
        probe: Status probe to use. Defaults to GitStatusProbe.
        cancel: Event that aborts the run when set.
        on_progress: Called on the calling thread whenever the number of
            found or probed repositories changes.

    Returns:
        Mapping of repository root to its filtered status. Repositories
        that are clean after filtering are not included.

    Raises:
        WalkError: If traversal failed fatally.
        StatusError: On the first repository that could not be probed.
        ScanCancelledError: If ``cancel`` was set from outside.
    """
    status_probe = probe if probe is not None else GitStatusProbe()
    stop = cancel if cancel is not None else threading.Event()
    excluder = Excluder.from_config(config)

    results: ScanResult = {}
    seen: set[str] = set()
    pending: set[Future[_Probed]] = set()
    failures: list[BaseException] = []
    failures_lock = threading.Lock()
    found = 0
    probed = 0
    status_duration = 0.0

    def run_probe(repo: str) -> _Probed:
        start = time.monotonic()
        files = status_probe.probe(repo)
        return repo, files, time.monotonic() - start

    def on_probe_done(future: Future[_Probed]) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            with failures_lock:
                failures.append(error)
            # Stop the walk as soon as one probe fails
            stop.set()

    def check_stop() -> None:
        if failures:
            raise failures[0]
        if stop.is_set():
            raise ScanCancelledError("scan cancelled")

    def collect(future: Future[_Probed]) -> None:
        nonlocal probed, status_duration
        repo, files, elapsed = future.result()
        probed += 1
        filtered = excluder.filter_status(files)
        logger.debug("%s %.3fs", repo, elapsed)
        if filtered:
            results[repo] = RepoStatus(files=filtered, scan_time=elapsed)
            status_duration += elapsed
        if on_progress is not None:
            on_progress(found, probed)

    started = time.monotonic()
    pool = ThreadPoolExecutor(
        max_workers=config.probe_workers,
        thread_name_prefix="dirtygit-probe",
    )
    try:
        for repo in walk(
            config.include_roots,
            exclude=excluder,
            follow_symlinks=config.follow_symlinks,
            cancel=stop,
        ):
            if repo in seen:
                continue
            seen.add(repo)
            found += 1
            if on_progress is not None:
                on_progress(found, probed)

            future = pool.submit(run_probe, repo)
            future.add_done_callback(on_probe_done)
            pending.add(future)

            for done in [f for f in pending if f.done()]:
                pending.discard(done)
                collect(done)

        logger.info("walkDuration: %.3fs", time.monotonic() - started)

        check_stop()
        for done in as_completed(pending):
            check_stop()
            collect(done)
    except BaseException:
        stop.set()
        raise
    finally:
        pool.shutdown(wait=True, cancel_futures=True)

    logger.info("statusDuration: %.3fs", status_duration)
    return results
