import asyncio
import heapq
import itertools
import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Set

from file_uploader.models import UploadConfig
from file_uploader.services.upload.upload_models import (
    DueStatus,
    PopResult,
    UploadTask,
)


class RetryQueue:
    """
    Due-time ordered upload queue with a pending-path index.

    A path is in the pending set iff exactly one task for it is in the heap.
    The path currently being uploaded is tracked separately as in flight and
    is never pending at the same time.

    All mutations hold a threading.Lock so producers may call enqueue() from
    any thread. The worker sleeps on an asyncio.Event that every mutation
    sets; cross-thread wake-ups go through call_soon_threadsafe.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._heap: List[UploadTask] = []
        self._pending: Set[str] = set()
        self._in_flight: Optional[str] = None
        self._sequence = itertools.count()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._wakeup: Optional[asyncio.Event] = None

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        """Bind wake-ups to the loop the worker runs on. Call from that loop."""
        self._loop = loop
        self._wakeup = asyncio.Event()
        if self._heap:
            self._wakeup.set()

    def detach(self) -> None:
        self._loop = None
        self._wakeup = None

    def enqueue(self, path: str, config: UploadConfig, delay: float = 0.0) -> bool:
        if not path:
            logging.warning("Ignoring upload request with empty path")
            return False
        if not config.upload_url:
            logging.warning(f"Ignoring upload request for {path}: no upload_url configured")
            return False

        with self._lock:
            if path in self._pending or path == self._in_flight:
                logging.debug(f"Already queued, skipping: {path}")
                return False

            task = UploadTask(
                next_attempt=self._clock() + delay,
                sequence=next(self._sequence),
                path=path,
                config=config.model_copy(deep=True),
            )
            self._push_locked(task)

        logging.info(f"QUEUED: {path} -> {config.upload_url}")
        self._notify()
        return True

    def pop_due(self) -> PopResult:
        with self._lock:
            if not self._heap:
                return PopResult(status=DueStatus.EMPTY)

            head = self._heap[0]
            now = self._clock()
            if head.next_attempt > now:
                return PopResult(
                    status=DueStatus.NOT_YET, wait_seconds=head.next_attempt - now
                )

            task = heapq.heappop(self._heap)
            self._pending.discard(task.path)
            self._in_flight = task.path
            return PopResult(status=DueStatus.READY, task=task)

    def retry(self, task: UploadTask, delay: float, error_message: Optional[str] = None) -> UploadTask:
        """Put a failed task back with its due-time pushed out by delay seconds."""
        retried = replace(
            task,
            next_attempt=self._clock() + delay,
            sequence=next(self._sequence),
            attempts=task.attempts + 1,
            last_error=error_message,
        )
        with self._lock:
            if self._in_flight == task.path:
                self._in_flight = None
            self._push_locked(retried)

        self._notify()
        return retried

    def finish(self, task: UploadTask) -> None:
        with self._lock:
            if self._in_flight == task.path:
                self._in_flight = None

    def wake(self) -> None:
        self._notify()

    def clear_wakeup(self) -> None:
        if self._wakeup is not None:
            self._wakeup.clear()

    async def wait_for_change(self, timeout: Optional[float] = None) -> bool:
        """Suspend until the queue changes or timeout expires. True if woken."""
        if self._wakeup is None:
            raise RuntimeError("RetryQueue is not attached to an event loop")

        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def pending_paths(self) -> Set[str]:
        with self._lock:
            return set(self._pending)

    @property
    def in_flight(self) -> Optional[str]:
        return self._in_flight

    def snapshot(self) -> List[Dict]:
        """Queued tasks in due order, for status reporting."""
        with self._lock:
            tasks = sorted(self._heap)
            now = self._clock()

        return [
            {
                "path": task.path,
                "upload_url": task.config.upload_url,
                "attempts": task.attempts,
                "due_in_seconds": round(max(0.0, task.next_attempt - now), 3),
                "enqueued_at": task.enqueued_at.isoformat(),
                "last_error": task.last_error,
            }
            for task in tasks
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._pending

    def _push_locked(self, task: UploadTask) -> None:
        self._pending.add(task.path)
        heapq.heappush(self._heap, task)

    def _notify(self) -> None:
        loop = self._loop
        wakeup = self._wakeup
        if loop is None or wakeup is None:
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            wakeup.set()
            return

        try:
            loop.call_soon_threadsafe(wakeup.set)
        except RuntimeError:
            # Loop already closed; the worker is gone
            logging.debug("Upload worker loop closed, wake-up dropped")
