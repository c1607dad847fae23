"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/watcher.py
Directory change notifications on top of watchdog.

One DirectoryWatcher owns one watchdog Observer thread and a path -> WatchHandle
mapping. Raw events arrive on the observer thread, are translated into ChangeEvents
and handed to the event loop with call_soon_threadsafe; from there they are fanned out
to every Subscription. Subscriptions are bounded queues with an explicit overflow
counter, so a slow consumer never stalls the observer.

Typical usage:
    async with DirectoryWatcher() as watcher:
        async with watcher.subscribe() as events:
            await watcher.watch("/data", recursive=True)
            async for event in events:
                ...
"""

import asyncio
import logging
import os
import stat
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from treeops.core.models import ChangeEvent, ChangeKind, WatchHandle
from treeops.core.paths import PathLike, resolve
from treeops.errors import (
    AlreadyWatchingError,
    InvalidArgumentError,
    NotADirectoryPathError,
    translate_os_error,
)

logger = logging.getLogger(__name__)

DEFAULT_EVENT_QUEUE_SIZE = 1024

_KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_CREATED: ChangeKind.CREATED,
    EVENT_TYPE_MODIFIED: ChangeKind.MODIFIED,
    EVENT_TYPE_DELETED: ChangeKind.REMOVED,
}

_CLOSED = object()


def translate_event(event: FileSystemEvent, timestamp: Optional[datetime] = None) -> List[ChangeEvent]:
    """
    Map one watchdog event onto ChangeEvents.

    A move is reported by the OS as two notifications (old name, new name) which
    watchdog fuses; it is split back into REMOVED(src) + CREATED(dest).
    Open/close notifications are not changes and map to nothing.
    """
    observed_at = timestamp or datetime.now(timezone.utc)
    src_path = os.fsdecode(event.src_path)

    if event.event_type == EVENT_TYPE_MOVED:
        dest_path = os.fsdecode(getattr(event, "dest_path", "") or "")
        events = [ChangeEvent(ChangeKind.REMOVED, src_path, observed_at)]
        if dest_path:
            events.append(ChangeEvent(ChangeKind.CREATED, dest_path, observed_at))
        return events

    kind = _KIND_BY_EVENT_TYPE.get(event.event_type)
    if kind is None:
        return []
    return [ChangeEvent(kind, src_path, observed_at)]


class Subscription:
    """
    Per-consumer channel of ChangeEvents.

    Attributes:
        maxsize: Maximum queued events (0 = unbounded)
        dropped: Events discarded because the queue was full
    """

    def __init__(self, watcher: "DirectoryWatcher", maxsize: int = DEFAULT_EVENT_QUEUE_SIZE):
        if maxsize < 0:
            raise InvalidArgumentError(f"maxsize must be >= 0, got {maxsize}")
        self.maxsize = maxsize
        self.dropped = 0
        self._watcher = watcher
        # Capacity is enforced in _offer so the close marker always fits.
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize() - (1 if self._closed else 0)

    def _offer(self, event: ChangeEvent) -> None:
        if self._closed:
            return
        if self.maxsize and self._queue.qsize() >= self.maxsize:
            self.dropped += 1
            logger.warning(f"Subscriber queue full, dropping {event.kind.value} {event.path}")
            return
        self._queue.put_nowait(event)

    async def get(self) -> Optional[ChangeEvent]:
        """Next event, or None once the subscription is closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def get_nowait(self) -> Optional[ChangeEvent]:
        """Next queued event, or None when nothing is waiting."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        self._watcher._remove_subscription(self)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


def _parent_dirs(event: FileSystemEvent) -> List[str]:
    """Directories watchdog reports as modified right after this event."""
    if event.event_type not in (EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED):
        return []
    parents = [os.path.dirname(os.fsdecode(event.src_path))]
    if event.event_type == EVENT_TYPE_MOVED:
        parents.append(os.path.dirname(os.fsdecode(event.dest_path)))
    return parents


class _EventRelay(FileSystemEventHandler):
    """
    Runs on the observer thread; forwards translated events to the loop.

    Watchdog follows every create, delete and move with its own DirModifiedEvent
    for the parent directory. That echo is not a separate OS notification and is
    swallowed here, so each notification yields exactly one translation.
    """

    def __init__(self, watcher: "DirectoryWatcher", handle: WatchHandle,
                 loop: asyncio.AbstractEventLoop):
        super().__init__()
        self._watcher = watcher
        self._handle = handle
        self._loop = loop
        self._echoes: List[str] = []

    def _is_parent_echo(self, event: FileSystemEvent) -> bool:
        # Echoes immediately follow their event; anything else clears the expectation.
        expected, self._echoes = self._echoes, []
        if event.event_type != EVENT_TYPE_MODIFIED or not event.is_directory:
            return False
        path = os.fsdecode(event.src_path)
        if path not in expected:
            return False
        expected.remove(path)
        self._echoes = expected
        return True

    def on_any_event(self, event: FileSystemEvent) -> None:
        if self._is_parent_echo(event):
            return
        self._echoes = _parent_dirs(event)
        events = translate_event(event)
        if not events:
            return
        try:
            self._loop.call_soon_threadsafe(self._watcher._dispatch, self._handle, events)
        except RuntimeError:
            # Loop already closed: the process is shutting down.
            logger.debug(f"Event loop closed, dropping {event.event_type} {event.src_path}")


class DirectoryWatcher:
    """
    Watches directories and delivers ChangeEvents to subscribers.

    Per path the lifecycle is unwatched -> watching -> unwatched. All mutation of
    the handle mapping is serialized by an asyncio.Lock.
    """

    def __init__(self, event_queue_size: int = DEFAULT_EVENT_QUEUE_SIZE,
                 observer_factory: Callable[[], Observer] = Observer):
        self.event_queue_size = event_queue_size
        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self._handles: Dict[str, WatchHandle] = {}
        self._subscriptions: List[Subscription] = []
        self._lock = asyncio.Lock()

    @property
    def watched_paths(self) -> List[str]:
        return list(self._handles)

    def is_watching(self, path: PathLike) -> bool:
        return resolve(path) in self._handles

    def subscribe(self, maxsize: Optional[int] = None) -> Subscription:
        subscription = Subscription(self, self.event_queue_size if maxsize is None else maxsize)
        self._subscriptions.append(subscription)
        return subscription

    async def watch(self, path: PathLike, recursive: bool = False) -> WatchHandle:
        abs_path = resolve(path)
        async with self._lock:
            if abs_path in self._handles:
                raise AlreadyWatchingError(f"Already watching directory: {abs_path}", abs_path)
            await self._check_directory(abs_path)

            observer = self._ensure_observer()
            handle = WatchHandle(path=abs_path, recursive=recursive)
            relay = _EventRelay(self, handle, asyncio.get_running_loop())
            self._handles[abs_path] = handle
            try:
                handle.watch = await asyncio.to_thread(
                    observer.schedule, relay, abs_path, recursive=recursive
                )
            except OSError as e:
                self._handles.pop(abs_path, None)
                handle.active = False
                raise translate_os_error(e, abs_path) from e

            logger.info(f"Watching {abs_path} (recursive={recursive})")
            return handle

    async def unwatch(self, path: PathLike) -> None:
        """Stop watching `path`. Unknown paths are ignored."""
        abs_path = resolve(path)
        async with self._lock:
            handle = self._handles.pop(abs_path, None)
            if handle is None:
                return
            await self._release(handle)

    async def close_all(self) -> None:
        """Unwatch every path and stop the observer thread."""
        async with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
            for handle in handles:
                await self._release(handle)

            observer, self._observer = self._observer, None
            if observer is not None:
                observer.stop()
                await asyncio.to_thread(observer.join)
                logger.debug("Observer stopped")

    async def __aenter__(self) -> "DirectoryWatcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close_all()

    # ---- internals ----

    def _ensure_observer(self) -> Observer:
        if self._observer is None:
            self._observer = self._observer_factory()
            self._observer.start()
            logger.debug("Observer started")
        return self._observer

    @staticmethod
    async def _check_directory(path: str) -> None:
        try:
            st = await asyncio.to_thread(os.stat, path)
        except OSError as e:
            raise translate_os_error(e, path) from e
        if not stat.S_ISDIR(st.st_mode):
            raise NotADirectoryPathError(f"Not a directory: {path}", path)

    async def _release(self, handle: WatchHandle) -> None:
        handle.active = False
        if self._observer is not None and handle.watch is not None:
            await asyncio.to_thread(self._observer.unschedule, handle.watch)
        logger.info(f"Stopped watching {handle.path}")

    def _dispatch(self, handle: WatchHandle, events: List[ChangeEvent]) -> None:
        # Events queued before unwatch/close_all must not leak out afterwards.
        if not handle.active or self._handles.get(handle.path) is not handle:
            return
        for event in events:
            for subscription in list(self._subscriptions):
                subscription._offer(event)

    def _remove_subscription(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
