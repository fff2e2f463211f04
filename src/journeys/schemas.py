from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from src.cities.schemas import CityInfo

class JourneyCreate(BaseModel):
    origin_city_id: int
    destination_city_id: int
    departure_time: datetime
    total_seats: int = Field(..., gt=0)

class JourneyUpdate(BaseModel):
    origin_city_id: Optional[int] = None
    destination_city_id: Optional[int] = None
    departure_time: Optional[datetime] = None
    total_seats: Optional[int] = Field(None, gt=0)

class AssignDriverRequest(BaseModel):
    driver_id: str

class Journey(BaseModel):
    id: str
    origin_city_id: int
    destination_city_id: int
    departure_time: datetime
    total_seats: int
    driver_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Public listing
class AvailableJourney(BaseModel):
    id: str
    origin_city: CityInfo
    destination_city: CityInfo
    departure_time: datetime
    available_seats: int
    has_driver: bool

class DriverInfo(BaseModel):
    id: str
    name: str
    email: str

# Admin listing
class AdminJourney(BaseModel):
    id: str
    origin_city: str
    destination_city: str
    departure_time: datetime
    total_seats: int
    booked_seats: int
    driver: Optional[DriverInfo] = None

# Driver listing
class DriverJourney(BaseModel):
    id: str
    origin_city: str
    destination_city: str
    departure_time: datetime
    total_seats: int
    booked_seats: int

class PassengerPickup(BaseModel):
    booking_id: str
    passenger_name: str
    seats: int
    pickup_lat: float
    pickup_lng: float

class JourneyPassengers(BaseModel):
    journey_id: str
    origin_city: str
    destination_city: str
    departure_time: datetime
    passengers: List[PassengerPickup]
