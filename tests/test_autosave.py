from schemas.flights import OwnerDataset
from services.autosave import AutosaveScheduler
from services.errors import GatewayError
from services.flight_store import FlightRecordStore

from helpers import ManualTimer, live_timers, make_flight


class RecordingGateway:
    def __init__(self):
        self.writes = []
        self.fail_next = 0

    def put_owner_dataset(self, owner_id, dataset: OwnerDataset):
        if self.fail_next:
            self.fail_next -= 1
            raise GatewayError("put_owner_dataset failed")
        self.writes.append((owner_id, [f.id for f in dataset.flights]))


def _scheduler(gateway):
    return AutosaveScheduler(gateway, delay=2.0, timer_factory=ManualTimer)


def test_rapid_mutations_collapse_into_one_write(timers):
    gateway = RecordingGateway()
    autosave = _scheduler(gateway)
    store = FlightRecordStore("tg_1001")

    for i in range(3):
        store.add(make_flight(id=str(i)))
        autosave.schedule(store)

    assert [t.cancelled for t in timers] == [True, True, False]
    assert all(t.daemon for t in timers)

    timers[-1].fire()
    assert gateway.writes == [("tg_1001", ["0", "1", "2"])]
    assert not store.dirty
    assert autosave.tracked() == 0


def test_cancelled_task_that_still_runs_does_not_flush(timers):
    gateway = RecordingGateway()
    autosave = _scheduler(gateway)
    store = FlightRecordStore("tg_1001")

    store.add(make_flight(id="1"))
    autosave.schedule(store)
    stale = timers[0]
    store.add(make_flight(id="2"))
    autosave.schedule(store)

    # Timer thread already past its wait when cancel() arrived
    stale.function(*stale.args)
    assert gateway.writes == []


def test_failed_flush_keeps_state_and_retries_next_cycle(timers):
    gateway = RecordingGateway()
    gateway.fail_next = 1
    autosave = _scheduler(gateway)
    store = FlightRecordStore("tg_1001")

    store.add(make_flight(id="1"))
    autosave.schedule(store)
    timers[-1].fire()

    assert gateway.writes == []
    assert store.dirty
    assert store.last_error == "put_owner_dataset failed"
    assert [f.id for f in store.list()] == ["1"]

    store.add(make_flight(id="2"))
    autosave.schedule(store)
    timers[-1].fire()

    assert gateway.writes == [("tg_1001", ["1", "2"])]
    assert store.last_error is None
    assert not store.dirty


def test_older_snapshot_never_overwrites_newer_write(timers):
    gateway = RecordingGateway()
    autosave = _scheduler(gateway)
    store = FlightRecordStore("tg_1001")

    store.add(make_flight(id="1"))
    store.add(make_flight(id="2"))
    assert autosave.flush(store) is True

    # Nothing newer than what was written, no second write
    assert autosave.flush(store) is True
    assert gateway.writes == [("tg_1001", ["1", "2"])]


def test_flush_pending_writes_every_dirty_store(timers):
    gateway = RecordingGateway()
    autosave = _scheduler(gateway)
    a = FlightRecordStore("tg_1")
    b = FlightRecordStore("tg_2")
    a.add(make_flight(id="a"))
    b.add(make_flight(id="b"))
    autosave.schedule(a)
    autosave.schedule(b)

    assert autosave.flush_pending() == 0
    assert sorted(gateway.writes) == [("tg_1", ["a"]), ("tg_2", ["b"])]
    assert live_timers() == []


def test_flush_pending_reports_failures(timers):
    gateway = RecordingGateway()
    gateway.fail_next = 1
    autosave = _scheduler(gateway)
    store = FlightRecordStore("tg_1")
    store.add(make_flight(id="a"))
    autosave.schedule(store)

    assert autosave.flush_pending() == 1
    assert store.dirty


def test_failed_store_stays_tracked_until_written(timers):
    gateway = RecordingGateway()
    gateway.fail_next = 1
    released = []
    autosave = _scheduler(gateway)
    autosave.on_idle = lambda s: released.append(s.owner_id) or True

    store = FlightRecordStore("tg_1")
    store.add(make_flight(id="a"))
    autosave.schedule(store)
    timers[-1].fire()
    assert autosave.tracked() == 1
    assert released == []

    assert autosave.flush_now(store) is True
    assert released == ["tg_1"]
    assert autosave.tracked() == 0


def test_old_task_cannot_fire_for_a_forgotten_owner(timers):
    gateway = RecordingGateway()
    autosave = _scheduler(gateway)
    first = FlightRecordStore("tg_1")
    first.add(make_flight(id="a"))
    autosave.schedule(first)
    stale = timers[0]
    autosave.flush_now(first)
    assert autosave.tracked() == 0

    second = FlightRecordStore("tg_1")
    second.add(make_flight(id="b"))
    autosave.schedule(second)

    stale.function(*stale.args)
    assert gateway.writes == [("tg_1", ["a"])]
    timers[-1].fire()
    assert gateway.writes == [("tg_1", ["a"]), ("tg_1", ["b"])]
