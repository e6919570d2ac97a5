"""
services/flight_store.py

In-memory flight records per owner.

- FlightRecordStore: one owner's dataset plus a mutation counter for autosave
- WorkspaceRegistry: applies the permission guard, hands every mutation to the
  AutosaveScheduler, and keeps a store cached only while it has changes that
  are not yet written back. Reads of an idle owner go to the gateway.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from schemas.flights import FlightRecord, OwnerDataset
from services.identity import Identity, data_owner_id, require_edit

logger = logging.getLogger(__name__)


class FlightRecordStore:

    def __init__(self, owner_id: str, dataset: Optional[OwnerDataset] = None):
        dataset = dataset or OwnerDataset()
        self.owner_id = owner_id
        self._flights: List[FlightRecord] = list(dataset.flights)
        self._airlines: List[str] = list(dataset.airlines)
        self._origin_cities: List[str] = list(dataset.originCities)
        self._destination_cities: List[str] = list(dataset.destinationCities)

        # version counts mutations, saved_version is the last one written back
        self.version = 0
        self.saved_version = 0
        self.last_error: Optional[str] = None

        self.lock = threading.RLock()
        # Serializes write-back of this store
        self.flush_lock = threading.Lock()
        # Set once the registry drops the store; a retired store takes no more mutations
        self.retired = False

    @property
    def dirty(self) -> bool:
        return self.version > self.saved_version

    def add(self, record: FlightRecord) -> None:
        with self.lock:
            self._flights.append(record)
            # Exact, case-sensitive growth; the lists never shrink
            if record.airline and record.airline not in self._airlines:
                self._airlines.append(record.airline)
            if record.origin and record.origin not in self._origin_cities:
                self._origin_cities.append(record.origin)
            if record.destination and record.destination not in self._destination_cities:
                self._destination_cities.append(record.destination)
            self.version += 1

    def delete(self, flight_id: str) -> bool:
        with self.lock:
            remaining = [f for f in self._flights if f.id != flight_id]
            if len(remaining) == len(self._flights):
                return False
            self._flights = remaining
            self.version += 1
            return True

    def list(self) -> List[FlightRecord]:
        with self.lock:
            return list(self._flights)

    def known_values(self) -> Dict[str, List[str]]:
        with self.lock:
            return {
                "airlines": list(self._airlines),
                "originCities": list(self._origin_cities),
                "destinationCities": list(self._destination_cities),
            }

    def snapshot(self) -> Tuple[int, OwnerDataset]:
        with self.lock:
            return self.version, OwnerDataset(
                flights=list(self._flights),
                airlines=list(self._airlines),
                originCities=list(self._origin_cities),
                destinationCities=list(self._destination_cities),
            )

    def mark_saved(self, version: int) -> None:
        with self.lock:
            if version > self.saved_version:
                self.saved_version = version
            if not self.dirty:
                self.last_error = None

    def mark_failed(self, message: str) -> None:
        with self.lock:
            self.last_error = message


class WorkspaceRegistry:

    def __init__(self, gateway, autosave):
        self._gateway = gateway
        self._autosave = autosave
        self._stores: Dict[str, FlightRecordStore] = {}
        self._lock = threading.Lock()

        autosave.on_idle = self.release

    def _load(self, owner_id: str) -> FlightRecordStore:
        dataset = self._gateway.get_owner_dataset(owner_id)
        logger.info(
            f"[workspace] loaded owner={owner_id} "
            f"flights={len(dataset.flights) if dataset else 0}"
        )
        return FlightRecordStore(owner_id, dataset)

    def cached(self, owner_id: str) -> Optional[FlightRecordStore]:
        with self._lock:
            return self._stores.get(owner_id)

    def store_for(self, owner_id: str) -> FlightRecordStore:
        """Cached store for owner_id, loading and caching it when absent."""
        store = self.cached(owner_id)
        if store is not None:
            return store

        # Load outside the registry lock, a slow database must not block other owners
        loaded = self._load(owner_id)

        with self._lock:
            # Another request may have loaded it meanwhile, keep the first
            store = self._stores.get(owner_id)
            if store is None:
                store = loaded
                self._stores[owner_id] = store
            return store

    def view_for(self, owner_id: str) -> FlightRecordStore:
        """Store for reading: the cached one when changes are in flight, a fresh load otherwise."""
        return self.cached(owner_id) or self._load(owner_id)

    def release(self, store: FlightRecordStore) -> bool:
        """Drop a clean store from the cache. Returns False while it still has unsaved changes."""
        with store.lock:
            if store.dirty:
                return False
            store.retired = True
            with self._lock:
                if self._stores.get(store.owner_id) is store:
                    del self._stores[store.owner_id]
        logger.info(f"[workspace] released owner={store.owner_id}")
        return True

    def _mutate(self, owner_id: str, action: Callable[[FlightRecordStore], Any]) -> Tuple[FlightRecordStore, Any]:
        while True:
            store = self.store_for(owner_id)
            with store.lock:
                # Released between lookup and lock, pick up the reloaded store
                if store.retired:
                    continue
                return store, action(store)

    def dataset_for(self, owner_id: str) -> OwnerDataset:
        return self.view_for(owner_id).snapshot()[1]

    def list_flights(self, identity: Identity) -> FlightRecordStore:
        return self.view_for(data_owner_id(identity))

    def add_flight(self, identity: Identity, record: FlightRecord) -> FlightRecordStore:
        require_edit(identity)
        store, _ = self._mutate(data_owner_id(identity), lambda s: s.add(record))
        logger.info(
            f"[workspace] add owner={store.owner_id} by={identity.kind} "
            f"flight={record.id} route={record.origin}->{record.destination}"
        )
        self._autosave.schedule(store)
        return store

    def delete_flight(self, identity: Identity, flight_id: str) -> bool:
        require_edit(identity)
        store, deleted = self._mutate(data_owner_id(identity), lambda s: s.delete(flight_id))
        logger.info(
            f"[workspace] delete owner={store.owner_id} by={identity.kind} "
            f"flight={flight_id} deleted={deleted}"
        )
        if deleted:
            self._autosave.schedule(store)
        else:
            # Nothing changed, do not keep the loaded store around
            self.release(store)
        return deleted

    def flush(self, identity: Identity) -> bool:
        require_edit(identity)
        store = self.cached(data_owner_id(identity))
        if store is None:
            return True
        return self._autosave.flush_now(store)
