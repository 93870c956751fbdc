"""Concurrent discovery of git repositories.

Walks every include root on its own thread and yields the parent of
each ``.git`` directory found. Traversals share one cancellation event;
a fatal error in one of them cancels the others.
"""

import errno
import logging
import os
import queue
import threading
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor

from dirtygit.scanner.errors import WalkError
from dirtygit.scanner.excluder import Excluder

logger = logging.getLogger(__name__)

GIT_DIR = ".git"

# Queue marker for "one root finished"
_DONE = object()


def _is_transient(error: OSError) -> bool:
    """Check if a per-entry error should skip the entry instead of aborting.

    Permission problems, entries that vanished or are dangling symlinks,
    and symlink loops are expected while walking a live filesystem.
    """
    if isinstance(error, (PermissionError, FileNotFoundError, NotADirectoryError)):
        return True
    return error.errno == errno.ELOOP


class _RootTraversal:
    """Depth-first traversal of a single include root.

    Args:
        root: Directory to walk.
        exclude: Excluder providing the exclude-root rule.
        follow_symlinks: Whether symbolic links are followed.
        cancel: Shared cancellation event, checked before every entry.
        emit: Called with each discovered repository path.
        fail: Called with a fatal error; the traversal stops afterwards.
    """

    def __init__(
        self,
        root: str,
        *,
        exclude: Excluder,
        follow_symlinks: bool,
        cancel: threading.Event,
        emit: Callable[[str], None],
        fail: Callable[[WalkError, bool], None],
    ) -> None:
        self._root = root
        self._exclude = exclude
        self._follow = follow_symlinks
        self._cancel = cancel
        self._emit = emit
        self._fail = fail
        # (st_dev, st_ino) of descended directories, only used when following links
        self._visited: set[tuple[int, int]] = set()

    def run(self) -> None:
        """Walk the root until exhausted, cancelled or failed."""
        if self._cancel.is_set() or self._exclude.is_excluded_root(self._root):
            return

        try:
            st = os.stat(self._root)
        except OSError as e:
            self._fail(WalkError(self._root, f"cannot open scan root: {e.strerror or e}"), False)
            return
        self._visited.add((st.st_dev, st.st_ino))

        stack = [self._root]
        while stack:
            if self._cancel.is_set():
                return
            directory = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = list(it)
            except OSError as e:
                if directory == self._root:
                    self._fail(
                        WalkError(self._root, f"cannot open scan root: {e.strerror or e}"),
                        False,
                    )
                    return
                if self._skip_or_abort(directory, e):
                    continue
                return

            for entry in entries:
                if self._cancel.is_set():
                    return
                try:
                    child = self._visit(entry)
                except OSError as e:
                    if self._skip_or_abort(entry.path, e):
                        continue
                    return
                if child is not None:
                    stack.append(child)

    def _visit(self, entry: os.DirEntry[str]) -> str | None:
        """Apply the per-entry rules.

        Returns:
            The entry path if it should be descended, None otherwise.
        """
        path = entry.path

        if self._exclude.is_excluded_root(path):
            return None

        if entry.is_symlink() and not self._follow:
            return None

        if entry.name == GIT_DIR:
            if entry.is_dir(follow_symlinks=self._follow):
                self._emit(os.path.dirname(path))
            return None

        if not entry.is_dir(follow_symlinks=self._follow):
            return None

        if self._follow:
            st = entry.stat(follow_symlinks=True)
            key = (st.st_dev, st.st_ino)
            if key in self._visited:
                return None
            self._visited.add(key)

        return path

    def _skip_or_abort(self, path: str, error: OSError) -> bool:
        """Handle an error on a single entry.

        Returns:
            True if the entry was skipped, False if the walk was aborted.
        """
        if _is_transient(error):
            logger.debug("Skipping %s: %s", path, error)
            return True
        logger.error("Aborting scan, cannot read %s: %s", path, error)
        self._fail(WalkError(path, error.strerror or str(error)), True)
        return False


def walk(
    roots: Iterable[str],
    *,
    exclude: Excluder | None = None,
    follow_symlinks: bool = False,
    cancel: threading.Event | None = None,
) -> Iterator[str]:
    """Find all git repositories below the given roots.

    Each root is traversed on its own thread. Paths are yielded as they
    are discovered, in no particular order. The iterator is single-use.

    Args:
        roots: Include roots to traverse.
        exclude: Excluder whose exclude roots prune whole subtrees.
        follow_symlinks: Follow symbolic links to directories.
        cancel: Event that stops all traversals when set. Set internally
            on a fatal error or when the iterator is closed early.

    Yields:
        Absolute paths of repository roots (the parent of ``.git``).

    Raises:
        WalkError: The first fatal error, once all traversals finished.
    """
    root_list = list(roots)
    if not root_list:
        return

    excluder = exclude if exclude is not None else Excluder()
    stop = cancel if cancel is not None else threading.Event()
    found: queue.Queue[object] = queue.Queue()
    errors: list[WalkError] = []
    errors_lock = threading.Lock()

    def fail(error: WalkError, cancel_siblings: bool) -> None:
        with errors_lock:
            errors.append(error)
        if cancel_siblings:
            stop.set()

    def run_root(root: str) -> None:
        try:
            _RootTraversal(
                root,
                exclude=excluder,
                follow_symlinks=follow_symlinks,
                cancel=stop,
                emit=found.put,
                fail=fail,
            ).run()
        finally:
            found.put(_DONE)

    remaining = len(root_list)
    executor = ThreadPoolExecutor(max_workers=remaining, thread_name_prefix="dirtygit-walk")
    futures = [executor.submit(run_root, root) for root in root_list]
    try:
        while remaining:
            item = found.get()
            if item is _DONE:
                remaining -= 1
                continue
            yield str(item)
    finally:
        if remaining:
            # Consumer stopped early
            stop.set()
        executor.shutdown(wait=True)

    for future in futures:
        # Surface unexpected exceptions from the traversal threads
        future.result()

    if errors:
        raise errors[0]
