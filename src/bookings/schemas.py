from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class BookingCreate(BaseModel):
    """Seat count and coordinates are validated by the booking service"""
    journey_id: str
    seats: int
    pickup_lat: float
    pickup_lng: float

class BookingSeatsUpdate(BaseModel):
    seats: int

class BookingResponse(BaseModel):
    id: str
    journey_id: str
    origin_city: str
    destination_city: str
    departure_time: datetime
    seats: int
    pickup_lat: float
    pickup_lng: float
    created_at: Optional[datetime] = None

class BookingInfo(BaseModel):
    """Administrative view of a booking"""
    id: str
    journey_id: str
    user_name: str
    user_email: str
    seats: int
    pickup_lat: float
    pickup_lng: float
    created_at: Optional[datetime] = None

class CancellationResult(BaseModel):
    message: str
    released_seats: int
