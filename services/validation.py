"""
services/validation.py

Add-flight form checks. A FlightRecord is only built once the form passes,
so invalid input never reaches the store or the database.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional
from uuid import uuid4

from config import LAYOVER_MAX_MINUTES, LAYOVER_MIN_MINUTES, MAX_PASSENGERS
from schemas.flights import FlightForm, FlightRecord, TripType
from services.errors import ValidationFailed

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# ASCII digits only, at most 15 of them
_PRICE_RE = re.compile(r"^[0-9]{1,15}$")
MAX_PRICE = 10 ** 15 - 1

ROUND_TRIP_ORDER_MESSAGE = "Return departure must be later than the outbound arrival"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def parse_clock(value: Optional[str]) -> Optional[time]:
    """'HH:MM' -> time, None for blank input. Raises ValueError on bad format."""
    value = _clean(value)
    if not value:
        return None
    match = _TIME_RE.match(value)
    if not match:
        raise ValueError(f"invalid time {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def parse_price(value) -> Optional[int]:
    """Digits only, strictly positive. None when the value is not a usable price."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 < value <= MAX_PRICE else None
    text = _clean(str(value))
    if not _PRICE_RE.match(text):
        return None
    price = int(text)
    return price if price > 0 else None


def validate_round_trip_dates(
    departure_date: date,
    arrival_time: Optional[str],
    arrival_next_day: bool,
    return_date: date,
    return_departure_time: Optional[str],
) -> bool:
    """
    Return departure must be strictly after the outbound arrival.
    The next-day flag moves the outbound arrival one day forward; a missing
    clock time counts as 00:00.
    """
    try:
        arrival_day = departure_date + timedelta(days=1 if arrival_next_day else 0)
    except OverflowError:
        # Arrival falls after the last representable day, nothing can follow it
        return False
    arrival = datetime.combine(arrival_day, parse_clock(arrival_time) or time(0, 0))
    back = datetime.combine(return_date, parse_clock(return_departure_time) or time(0, 0))
    return back > arrival


def _check_layover(errors: List[str], leg: str, city: Optional[str], duration: Optional[int]) -> None:
    if not _clean(city):
        errors.append(f"Layover city is required for a connecting flight ({leg})")
    if duration is None or not (LAYOVER_MIN_MINUTES <= duration <= LAYOVER_MAX_MINUTES):
        errors.append(
            f"Layover duration ({leg}) must be between "
            f"{LAYOVER_MIN_MINUTES} and {LAYOVER_MAX_MINUTES} minutes"
        )


def validate_flight_form(form: FlightForm) -> List[str]:
    errors: List[str] = []

    if not _clean(form.origin):
        errors.append("Origin is required")
    if not _clean(form.destination):
        errors.append("Destination is required")
    if not _clean(form.airline):
        errors.append("Airline is required")
    if form.departureDate is None:
        errors.append("Departure date is required")
    if not (1 <= form.passengers <= MAX_PASSENGERS):
        errors.append(f"Passengers must be between 1 and {MAX_PASSENGERS}")
    if parse_price(form.totalPrice) is None:
        errors.append("Enter a valid price (digits only, greater than 0)")

    round_trip = form.type == TripType.ROUND_TRIP
    time_fields = ["departureTime", "arrivalTime"]
    if round_trip:
        time_fields += ["returnDepartureTime", "returnArrivalTime"]
    bad_time = False
    for name in time_fields:
        try:
            parse_clock(getattr(form, name))
        except ValueError:
            errors.append(f"{name} must be in HH:MM format")
            bad_time = True

    if not form.isDirectThere:
        _check_layover(errors, "outbound", form.layoverCityThere, form.layoverDurationThere)

    if round_trip:
        if form.returnDate is None:
            errors.append("Return date is required for a round trip")
        if not _clean(form.returnDepartureTime):
            errors.append("Return departure time is required for a round trip")
        if not _clean(form.returnArrivalTime):
            errors.append("Return arrival time is required for a round trip")
        if not form.isDirectBack:
            _check_layover(errors, "return", form.layoverCityBack, form.layoverDurationBack)

        if form.departureDate and form.returnDate and not bad_time:
            if not validate_round_trip_dates(
                form.departureDate,
                form.arrivalTime,
                form.arrivalNextDay,
                form.returnDate,
                form.returnDepartureTime,
            ):
                errors.append(ROUND_TRIP_ORDER_MESSAGE)

    return errors


def build_flight_record(
    form: FlightForm,
    today: Optional[date] = None,
    id_factory: Callable[[], str] = lambda: str(uuid4()),
) -> FlightRecord:
    """Validate the form and turn it into a record, dropping fields that do not apply."""
    errors = validate_flight_form(form)
    if errors:
        raise ValidationFailed(errors)

    round_trip = form.type == TripType.ROUND_TRIP
    direct_back = form.isDirectBack if round_trip else True

    return FlightRecord(
        id=id_factory(),
        origin=_clean(form.origin),
        destination=_clean(form.destination),
        type=form.type,
        departureDate=form.departureDate,
        returnDate=form.returnDate if round_trip else None,
        departureTime=_clean(form.departureTime) or None,
        arrivalTime=_clean(form.arrivalTime) or None,
        returnDepartureTime=_clean(form.returnDepartureTime) if round_trip else None,
        returnArrivalTime=_clean(form.returnArrivalTime) if round_trip else None,
        arrivalNextDay=form.arrivalNextDay,
        returnArrivalNextDay=form.returnArrivalNextDay if round_trip else False,
        isDirectThere=form.isDirectThere,
        isDirectBack=direct_back,
        layoverCityThere=None if form.isDirectThere else _clean(form.layoverCityThere),
        layoverDurationThere=None if form.isDirectThere else form.layoverDurationThere,
        layoverCityBack=None if direct_back else _clean(form.layoverCityBack),
        layoverDurationBack=None if direct_back else form.layoverDurationBack,
        airline=_clean(form.airline),
        passengers=form.passengers,
        totalPrice=parse_price(form.totalPrice),
        dateFound=today or date.today(),
    )
