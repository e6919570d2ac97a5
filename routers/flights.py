"""routers/flights.py - Flight history: list, group, analyze, add, delete, flush."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from routers.deps import get_identity, get_services
from schemas.flights import (
    AddFlightResponse,
    DestinationGroup,
    FlightForm,
    FlightListResponse,
    PriceAnalysis,
)
from services.context import AppServices
from services.identity import Identity, data_owner_id, permission_label
from services.price_analyzer import analyze_flight_price, filter_destinations, summarize_destinations
from services.validation import build_flight_record

router = APIRouter()


@router.get("/flights", response_model=FlightListResponse)
def list_flights(
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    store = services.workspaces.list_flights(identity)
    known = store.known_values()
    return FlightListResponse(
        ownerId=data_owner_id(identity),
        identity=identity.kind,
        permission=permission_label(identity),
        ownerLabel=identity.owner_label if identity.kind == "guest" else None,
        flights=store.list(),
        airlines=known["airlines"],
        originCities=known["originCities"],
        destinationCities=known["destinationCities"],
        pendingSave=store.dirty,
        saveError=store.last_error,
    )


@router.get("/flights/groups", response_model=List[DestinationGroup])
def flight_groups(
    q: Optional[str] = None,
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    store = services.workspaces.list_flights(identity)
    return filter_destinations(summarize_destinations(store.list()), q)


@router.post("/flights/analyze", response_model=PriceAnalysis)
def analyze_flight(
    payload: FlightForm,
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    """Preview how a flight compares without saving it."""
    candidate = build_flight_record(payload, today=date.today())
    store = services.workspaces.list_flights(identity)
    return analyze_flight_price(candidate, store.list())


@router.post("/flights", response_model=AddFlightResponse)
def add_flight(
    payload: FlightForm,
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    record = build_flight_record(payload, today=date.today())

    # Analysis runs against the history as it was before this entry
    history = services.workspaces.list_flights(identity).list()
    analysis = analyze_flight_price(record, history)

    services.workspaces.add_flight(identity, record)
    return AddFlightResponse(flight=record, analysis=analysis)


@router.delete("/flights/{flight_id}")
def delete_flight(
    flight_id: str,
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    deleted = services.workspaces.delete_flight(identity, flight_id)
    return {"status": "ok", "id": flight_id, "deleted": deleted}


@router.post("/flights/flush")
def flush_flights(
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    if not services.workspaces.flush(identity):
        raise HTTPException(
            status_code=503,
            detail={"code": "STORAGE_UNAVAILABLE", "message": "Changes kept locally, saving will be retried"},
        )
    return {"status": "saved"}
