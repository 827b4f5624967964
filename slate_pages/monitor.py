"""Live rebuilding of a source directory into published in-memory snapshots.

The monitor has four states:

``IDLE``
    Nothing to do.
``PENDING``
    A change was observed; a rebuild is due one quiet window after the most
    recent event, so a burst of events keeps pushing the deadline back.
``BUILDING``
    The orchestrator is running against a fresh :class:`MemoryTree`. Events
    arriving meanwhile are remembered and schedule one more cycle afterwards.
``PUBLISHED``
    The new tree has been frozen and swapped in as the current snapshot.

A failed rebuild is logged and leaves the previous snapshot serving.
:class:`DebounceMachine` holds the transition table with no threads or
clocks of its own; :class:`LiveMonitor` drives it from a consumer thread and
a ``watchfiles`` watcher thread.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import threading
import time
import typing as typ

import structlog
from watchfiles import watch

from slate_pages._constants import DEFAULT_QUIET_WINDOW
from slate_pages.builder import build_site
from slate_pages.errors import SlateError
from slate_pages.sources import SourceTree
from slate_pages.staging import MemoryTree

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from slate_pages.config import BuildParameters
    from slate_pages.staging import OutputTree, Snapshot

    Builder = cabc.Callable[[SourceTree, OutputTree, BuildParameters], object]

logger = structlog.get_logger(__name__)

WATCH_DEBOUNCE_MS = 50
WATCH_STEP_MS = 50


class MonitorState(enum.Enum):
    """States of the live rebuild cycle."""

    IDLE = "idle"
    PENDING = "pending"
    BUILDING = "building"
    PUBLISHED = "published"


@dc.dataclass(slots=True)
class DebounceMachine:
    """Transition table of the rebuild cycle, driven by explicit timestamps.

    Examples
    --------
    >>> machine = DebounceMachine(quiet_window=2.0)
    >>> machine.observe(0.0); machine.observe(1.5)
    >>> machine.due(3.0), machine.due(3.5)
    (False, True)
    """

    quiet_window: float = DEFAULT_QUIET_WINDOW
    state: MonitorState = MonitorState.IDLE
    deadline: float | None = None
    dirty: bool = False

    def observe(self, now: float) -> None:
        """Record a filesystem event at ``now``."""
        self.deadline = now + self.quiet_window
        if self.state is MonitorState.BUILDING:
            self.dirty = True
        else:
            self.state = MonitorState.PENDING

    def due(self, now: float) -> bool:
        """Return whether a pending rebuild's quiet window has elapsed."""
        return (
            self.state is MonitorState.PENDING
            and self.deadline is not None
            and now >= self.deadline
        )

    def remaining(self, now: float) -> float | None:
        """Return seconds until the rebuild is due, ``None`` when not pending."""
        if self.state is not MonitorState.PENDING or self.deadline is None:
            return None
        return max(0.0, self.deadline - now)

    def begin(self) -> None:
        """Move from ``PENDING`` to ``BUILDING``.

        Raises
        ------
        RuntimeError
            If no rebuild is pending.
        """
        if self.state is not MonitorState.PENDING:
            msg = f"Cannot start a rebuild from state {self.state.value!r}."
            raise RuntimeError(msg)
        self.state = MonitorState.BUILDING
        self.dirty = False

    def finish(self, *, success: bool) -> None:
        """Record the outcome of the running build.

        Success moves to ``PUBLISHED`` until :meth:`settle` is called. Failure
        settles straight from ``BUILDING``: back to ``IDLE``, or ``PENDING``
        when events arrived during the build.
        """
        if self.state is not MonitorState.BUILDING:
            msg = f"No rebuild running (state {self.state.value!r})."
            raise RuntimeError(msg)
        if success:
            self.state = MonitorState.PUBLISHED
        else:
            self.settle()

    def settle(self) -> None:
        """Return to ``IDLE``, or to ``PENDING`` if events arrived meanwhile."""
        if self.dirty:
            self.state = MonitorState.PENDING
            self.dirty = False
        else:
            self.state = MonitorState.IDLE
            self.deadline = None


class LiveMonitor:
    """Watch a source directory and republish a snapshot after each change.

    Parameters
    ----------
    source_dir : Path or None
        User source directory; ``None`` serves the bundled defaults and
        watches nothing.
    params : BuildParameters
        Parameters used for every rebuild.
    quiet_window : float, optional
        Seconds without events before a rebuild starts.
    clock : Callable[[], float], optional
        Monotonic clock used for debouncing.
    builder : Callable, optional
        Build function; defaults to :func:`slate_pages.builder.build_site`.
    """

    def __init__(
        self,
        source_dir: Path | None,
        params: BuildParameters,
        *,
        quiet_window: float = DEFAULT_QUIET_WINDOW,
        clock: cabc.Callable[[], float] = time.monotonic,
        builder: Builder = build_site,
    ) -> None:
        self.source_dir = source_dir
        self.params = params
        self._tree = SourceTree.for_directory(source_dir)
        self._clock = clock
        self._builder = builder
        self._machine = DebounceMachine(quiet_window=quiet_window)
        self._condition = threading.Condition()
        self._snapshot_lock = threading.Lock()
        self._snapshot: Snapshot | None = None
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self.builds = 0
        self.failures = 0

    @property
    def state(self) -> MonitorState:
        """Return the current state of the rebuild cycle."""
        with self._condition:
            return self._machine.state

    @property
    def is_running(self) -> bool:
        """Whether the background threads are active."""
        return any(thread.is_alive() for thread in self._threads)

    def snapshot(self) -> Snapshot:
        """Return the most recently published snapshot.

        The lock is held only while the reference is read; the snapshot
        itself is immutable and safe to read without further locking.

        Raises
        ------
        RuntimeError
            If nothing has been published yet.
        """
        with self._snapshot_lock:
            snapshot = self._snapshot
        if snapshot is None:
            msg = "No snapshot published yet; call start() first."
            raise RuntimeError(msg)
        return snapshot

    def rebuild(self) -> Snapshot:
        """Build into a fresh in-memory tree and publish it.

        Raises
        ------
        SlateError
            If the build fails; the previous snapshot stays published.
        """
        snapshot = self._build()
        self._publish(snapshot)
        return snapshot

    def _build(self) -> Snapshot:
        tree = MemoryTree()
        self._builder(self._tree, tree, self.params)
        self.builds += 1
        return tree.freeze()

    def _publish(self, snapshot: Snapshot) -> None:
        with self._snapshot_lock:
            self._snapshot = snapshot

    def start(self, *, watch_changes: bool = True) -> Snapshot:
        """Run the initial build, then start the background threads.

        Raises
        ------
        SlateError
            If the initial build fails.
        """
        snapshot = self.rebuild()
        logger.info("INITIAL_BUILD_PUBLISHED", files=len(snapshot.files))
        self._stop_event.clear()
        consumer = threading.Thread(
            target=self._consume, name="slate-rebuild", daemon=True
        )
        self._threads = [consumer]
        if watch_changes and self.source_dir is not None:
            self._threads.append(
                threading.Thread(target=self._watch, name="slate-watcher", daemon=True)
            )
        for thread in self._threads:
            thread.start()
        return snapshot

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the background threads; a running rebuild finishes first."""
        self._stop_event.set()
        with self._condition:
            self._condition.notify_all()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []

    def notify(self) -> None:
        """Record a filesystem change now."""
        with self._condition:
            self._machine.observe(self._clock())
            self._condition.notify_all()

    def _watch(self) -> None:
        if self.source_dir is None:  # pragma: no cover - guarded by start()
            return
        for changes in watch(
            self.source_dir,
            stop_event=self._stop_event,
            debounce=WATCH_DEBOUNCE_MS,
            step=WATCH_STEP_MS,
            raise_interrupt=False,
        ):
            logger.debug("SOURCE_CHANGED", changes=len(changes))
            self.notify()

    def _consume(self) -> None:
        while not self._stop_event.is_set():
            with self._condition:
                while not self._stop_event.is_set() and not self._machine.due(
                    self._clock()
                ):
                    self._condition.wait(self._machine.remaining(self._clock()))
                if self._stop_event.is_set():
                    return
                self._machine.begin()
            self._run_build()

    def _run_build(self) -> None:
        started = self._clock()
        try:
            snapshot = self._build()
        except SlateError as exc:
            self.failures += 1
            logger.error("REBUILD_FAILED", error=str(exc))  # noqa: TRY400
            with self._condition:
                self._machine.finish(success=False)
            return
        except Exception:  # noqa: BLE001 - a rebuild must never stop serving
            self.failures += 1
            logger.exception("REBUILD_FAILED")
            with self._condition:
                self._machine.finish(success=False)
            return
        with self._condition:
            self._machine.finish(success=True)
            self._publish(snapshot)
            logger.info(
                "REBUILD_PUBLISHED",
                files=len(snapshot.files),
                seconds=round(self._clock() - started, 3),
            )
            self._machine.settle()


__all__ = ["DebounceMachine", "LiveMonitor", "MonitorState"]
