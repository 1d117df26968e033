from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable

from errors import QueryCancelled


@dataclass
class CancelScope:
    """
    Cross-thread cancellation handle for one in-flight store query.

    The request handler calls `cancel()` (e.g. on client disconnect); the store
    either polls `raise_if_cancelled()` or registers an interrupt callback.
    """

    _event: threading.Event = field(default_factory=threading.Event, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _callbacks: list[Callable[[], None]] = field(default_factory=list, repr=False)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for cb in callbacks:
            try:
                cb()
            except Exception:
                # The query may already have finished and released its handle.
                pass

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise QueryCancelled("query cancelled by caller")

    def on_cancel(self, cb: Callable[[], None]) -> Callable[[], None]:
        """
        Register `cb` to run on cancel (immediately if already cancelled).

        Returns an unregister function.
        """
        with self._lock:
            already = self._event.is_set()
            if not already:
                self._callbacks.append(cb)
        if already:
            cb()

        def _remove() -> None:
            with self._lock:
                try:
                    self._callbacks.remove(cb)
                except ValueError:
                    pass

        return _remove
