"""schemas/flights.py - Pydantic models for flight records, the add-flight form and history views."""

from datetime import date
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class TripType(str, Enum):
    ONE_WAY = "oneWay"
    ROUND_TRIP = "roundTrip"


class FlightRecord(BaseModel):
    id: str

    origin: str
    destination: str
    type: TripType = TripType.ONE_WAY

    departureDate: date
    returnDate: Optional[date] = None

    # "HH:MM" clock times
    departureTime: Optional[str] = None
    arrivalTime: Optional[str] = None
    returnDepartureTime: Optional[str] = None
    returnArrivalTime: Optional[str] = None

    arrivalNextDay: bool = False
    returnArrivalNextDay: bool = False

    isDirectThere: bool = True
    isDirectBack: bool = True
    layoverCityThere: Optional[str] = None
    layoverDurationThere: Optional[int] = None  # minutes
    layoverCityBack: Optional[str] = None
    layoverDurationBack: Optional[int] = None

    airline: str
    passengers: int = Field(1, ge=1, le=4)
    totalPrice: int = Field(..., gt=0)
    dateFound: date


class FlightForm(BaseModel):
    """
    Raw add-flight form as the client submits it.
    Everything is optional here, services/validation.py decides what is missing.
    """
    origin: Optional[str] = ""
    destination: Optional[str] = ""
    type: TripType = TripType.ONE_WAY

    departureDate: Optional[date] = None
    returnDate: Optional[date] = None
    departureTime: Optional[str] = None
    arrivalTime: Optional[str] = None
    returnDepartureTime: Optional[str] = None
    returnArrivalTime: Optional[str] = None
    arrivalNextDay: bool = False
    returnArrivalNextDay: bool = False

    isDirectThere: bool = True
    isDirectBack: bool = True
    layoverCityThere: Optional[str] = None
    layoverDurationThere: Optional[int] = 60
    layoverCityBack: Optional[str] = None
    layoverDurationBack: Optional[int] = 60

    airline: Optional[str] = ""
    passengers: int = 1

    # The form field is free text, digits only are accepted
    totalPrice: Optional[Union[int, str]] = None


class OwnerDataset(BaseModel):
    flights: List[FlightRecord] = []
    airlines: List[str] = []
    originCities: List[str] = []
    destinationCities: List[str] = []


class DealType(str, Enum):
    GOOD = "good"
    NEUTRAL = "neutral"
    BAD = "bad"


class PriceAnalysis(BaseModel):
    type: DealType
    message: str
    diff: Optional[int] = None


class DestinationGroup(BaseModel):
    destination: str
    count: int
    bestFlight: FlightRecord
    bestPricePerPerson: float
    lastFound: date
    flights: List[FlightRecord]


class FlightListResponse(BaseModel):
    ownerId: str
    identity: str  # "owner" | "guest"
    permission: str  # "owner" | "view" | "edit"
    ownerLabel: Optional[str] = None

    flights: List[FlightRecord]
    airlines: List[str]
    originCities: List[str]
    destinationCities: List[str]

    # Autosave status, a failed flush is retried on the next change
    pendingSave: bool = False
    saveError: Optional[str] = None


class AddFlightResponse(BaseModel):
    flight: FlightRecord
    analysis: PriceAnalysis
