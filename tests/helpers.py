from datetime import date, datetime, timedelta

from schemas.flights import FlightRecord, TripType


class ManualTimer:
    """Stand-in for threading.Timer; tests fire it explicitly instead of sleeping."""

    created = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        ManualTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)


def live_timers():
    return [t for t in ManualTimer.created if t.started and not t.cancelled]


class FakeClock:
    def __init__(self, now=None):
        self.now = now or datetime(2026, 10, 17, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def make_flight(**overrides):
    data = dict(
        id="f-1",
        origin="Moscow",
        destination="Antalya",
        type=TripType.ONE_WAY,
        departureDate=date(2026, 11, 1),
        airline="Pegasus",
        passengers=1,
        totalPrice=20000,
        dateFound=date(2026, 10, 1),
    )
    data.update(overrides)
    return FlightRecord(**data)
