"""
services/autosave.py

Debounced write-back of owner datasets.

Each mutation cancels the pending flush task for that owner and schedules a
new one, so only the state after a quiet period is written. Flushes of one
store run one at a time and a snapshot that is not newer than the last saved
version is skipped, so a write issued earlier never lands over a later one.
A failed flush leaves the store dirty and the next cycle writes it again.

Once a store is written and has no task pending it is handed to `on_idle`
(WorkspaceRegistry.release) and forgotten here.
"""

import itertools
import logging
import threading
from typing import Callable, Dict, Optional

from config import AUTOSAVE_DELAY_SECONDS
from services.errors import GatewayError
from services.flight_store import FlightRecordStore

logger = logging.getLogger(__name__)


class AutosaveScheduler:

    def __init__(
        self,
        gateway,
        delay: float = AUTOSAVE_DELAY_SECONDS,
        timer_factory: Callable = threading.Timer,
        on_idle: Optional[Callable[[FlightRecordStore], bool]] = None,
    ):
        self._gateway = gateway
        self._delay = delay
        self._timer_factory = timer_factory
        self.on_idle = on_idle

        self._pending: Dict[str, object] = {}
        self._generation: Dict[str, int] = {}
        self._stores: Dict[str, FlightRecordStore] = {}
        # Generations never repeat, so a forgotten owner cannot be matched by an old task
        self._counter = itertools.count(1)
        self._guard = threading.Lock()

    def tracked(self) -> int:
        with self._guard:
            return len(self._stores)

    def schedule(self, store: FlightRecordStore) -> None:
        owner_id = store.owner_id
        with self._guard:
            previous = self._pending.pop(owner_id, None)
            if previous is not None:
                previous.cancel()

            generation = next(self._counter)
            self._generation[owner_id] = generation
            self._stores[owner_id] = store

            task = self._timer_factory(self._delay, self._on_timer, args=(store, generation))
            task.daemon = True
            self._pending[owner_id] = task
        task.start()

    def _on_timer(self, store: FlightRecordStore, generation: int) -> None:
        with self._guard:
            # A task that lost the race with cancel() must not flush
            if self._generation.get(store.owner_id) != generation:
                return
            self._pending.pop(store.owner_id, None)
        if self.flush(store):
            self._release_if_idle(store)

    def flush(self, store: FlightRecordStore) -> bool:
        with store.flush_lock:
            version, dataset = store.snapshot()
            if version <= store.saved_version:
                return True
            try:
                self._gateway.put_owner_dataset(store.owner_id, dataset)
            except GatewayError as e:
                store.mark_failed(str(e))
                logger.warning(
                    f"[autosave] flush failed owner={store.owner_id} version={version}, "
                    f"kept in memory for the next cycle: {e}"
                )
                return False
            store.mark_saved(version)
            logger.info(f"[autosave] flushed owner={store.owner_id} version={version}")
            return True

    def flush_now(self, store: FlightRecordStore) -> bool:
        with self._guard:
            task = self._pending.pop(store.owner_id, None)
            if task is not None:
                task.cancel()
            if store.owner_id in self._generation:
                self._generation[store.owner_id] = next(self._counter)
        if not self.flush(store):
            return False
        self._release_if_idle(store)
        return True

    def _release_if_idle(self, store: FlightRecordStore) -> None:
        owner_id = store.owner_id
        with self._guard:
            if owner_id in self._pending:
                return
        released = not store.dirty if self.on_idle is None else self.on_idle(store)
        if not released:
            return
        with self._guard:
            if self._stores.get(owner_id) is store and owner_id not in self._pending:
                del self._stores[owner_id]
                self._generation.pop(owner_id, None)

    def flush_pending(self) -> int:
        """Write every dirty store now. Returns how many flushes failed."""
        with self._guard:
            stores = list(self._stores.values())
        failures = 0
        for store in stores:
            if store.dirty and not self.flush_now(store):
                failures += 1
        return failures
