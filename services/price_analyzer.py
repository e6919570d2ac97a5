"""
services/price_analyzer.py

Deal detection and history ranking.

- analyze_flight_price: compares a new entry with earlier entries on the same route
- get_best_flight / summarize_destinations: per-person ranking for the history view

Everything here is pure, no I/O and no clock reads.
"""

from typing import Dict, Iterable, List, Optional

from config import PRICE_THRESHOLD
from schemas.flights import DealType, DestinationGroup, FlightRecord, PriceAnalysis


# =====================================================================
# SECTION: DEAL DETECTION
# =====================================================================

def comparable_flights(candidate: FlightRecord, history: Iterable[FlightRecord]) -> List[FlightRecord]:
    return [
        f for f in history
        if f.origin == candidate.origin
        and f.destination == candidate.destination
        and f.passengers == candidate.passengers
        and f.type == candidate.type
    ]


def analyze_flight_price(
    candidate: FlightRecord,
    history: Iterable[FlightRecord],
    threshold: int = PRICE_THRESHOLD,
) -> PriceAnalysis:
    """
    Classify candidate against the cheapest comparable entry.

    Comparable entries share passenger count, so total price is compared
    directly. |diff| <= threshold is neutral.
    """
    comparable = comparable_flights(candidate, history)

    if not comparable:
        return PriceAnalysis(
            type=DealType.GOOD,
            message="First offer on this route! Saved.",
        )

    best = min(f.totalPrice for f in comparable)
    diff = candidate.totalPrice - best

    if diff < -threshold:
        return PriceAnalysis(
            type=DealType.GOOD,
            message=f"Good deal! Cheaper by {abs(diff)} than the best so far.",
            diff=diff,
        )
    if diff <= threshold:
        sign = "+" if diff >= 0 else ""
        return PriceAnalysis(
            type=DealType.NEUTRAL,
            message=f"About the same price ({sign}{diff}).",
            diff=diff,
        )
    return PriceAnalysis(
        type=DealType.BAD,
        message=f"More expensive by {diff} than the best so far. Not worth it.",
        diff=diff,
    )


# =====================================================================
# SECTION: HISTORY RANKING
# =====================================================================

def per_person_price(flight: FlightRecord) -> float:
    return flight.totalPrice / flight.passengers


def get_best_flight(flights: List[FlightRecord]) -> FlightRecord:
    """Cheapest per person; the earliest entry wins a tie."""
    if not flights:
        raise ValueError("get_best_flight needs at least one flight")
    best = flights[0]
    for flight in flights[1:]:
        if per_person_price(flight) < per_person_price(best):
            best = flight
    return best


def group_flights_by_destination(flights: Iterable[FlightRecord]) -> Dict[str, List[FlightRecord]]:
    groups: Dict[str, List[FlightRecord]] = {}
    for flight in flights:
        groups.setdefault(flight.destination, []).append(flight)
    return groups


def summarize_destinations(flights: Iterable[FlightRecord]) -> List[DestinationGroup]:
    result: List[DestinationGroup] = []
    for destination, group in group_flights_by_destination(flights).items():
        best = get_best_flight(group)
        result.append(DestinationGroup(
            destination=destination,
            count=len(group),
            bestFlight=best,
            bestPricePerPerson=per_person_price(best),
            lastFound=max(f.dateFound for f in group),
            flights=group,
        ))
    return result


def filter_destinations(groups: List[DestinationGroup], term: Optional[str]) -> List[DestinationGroup]:
    """Case-insensitive substring match on the destination name; a blank term keeps everything."""
    term = (term or "").strip().lower()
    if not term:
        return groups
    return [g for g in groups if term in g.destination.lower()]
