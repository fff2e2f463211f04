from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from src.admin.admin_service import AdminManagementService
from src.admin.schemas import DriverCreate, DriverResponse, MessageResponse
from src.bookings.booking_service import BookingService
from src.bookings.schemas import BookingInfo, BookingSeatsUpdate, CancellationResult
from src.clock import as_utc
from src.database import get_db
from src.journeys.schemas import (
    AdminJourney, AssignDriverRequest, Journey, JourneyCreate, JourneyPassengers, JourneyUpdate
)
from src.journeys.service import JourneyService

router = APIRouter()

# Journey Management
@router.get("/journeys", response_model=List[AdminJourney])
def list_journeys(db: Session = Depends(get_db)):
    """List all journeys with booked seats and assigned driver"""
    return JourneyService(db).list_all()

@router.post("/journeys", response_model=Journey, status_code=status.HTTP_201_CREATED)
def create_journey(payload: JourneyCreate, db: Session = Depends(get_db)):
    """Create a new journey"""
    return JourneyService(db).create_journey(payload)

@router.put("/journeys/{journey_id}", response_model=Journey)
def update_journey(journey_id: str, payload: JourneyUpdate, db: Session = Depends(get_db)):
    """Update journey cities, departure time or seat capacity"""
    return JourneyService(db).update_journey(journey_id, payload)

@router.delete("/journeys/{journey_id}", response_model=MessageResponse)
def delete_journey(journey_id: str, db: Session = Depends(get_db)):
    """Delete a journey together with its bookings"""
    JourneyService(db).delete_journey(journey_id)
    return MessageResponse(message="Journey deleted")

@router.post("/journeys/{journey_id}/assign-driver", response_model=Journey)
def assign_driver(journey_id: str, payload: AssignDriverRequest, db: Session = Depends(get_db)):
    """Assign a driver to a journey"""
    return JourneyService(db).assign_driver(journey_id, payload.driver_id)

@router.get("/journeys/{journey_id}/passengers", response_model=JourneyPassengers)
def journey_passengers(journey_id: str, db: Session = Depends(get_db)):
    """Passenger pickup list for any journey"""
    return JourneyService(db).passengers(journey_id)

# Driver Management
@router.get("/drivers", response_model=List[DriverResponse])
def list_drivers(db: Session = Depends(get_db)):
    """List all driver accounts"""
    return AdminManagementService(db).list_drivers()

@router.post("/drivers", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
def create_driver(payload: DriverCreate, db: Session = Depends(get_db)):
    """Create a new driver account"""
    return AdminManagementService(db).create_driver(payload)

@router.delete("/drivers/{driver_id}", response_model=MessageResponse)
def delete_driver(driver_id: str, db: Session = Depends(get_db)):
    """Delete a driver account"""
    AdminManagementService(db).delete_driver(driver_id)
    return MessageResponse(message="Driver deleted")

# Booking Management
@router.get("/bookings", response_model=List[BookingInfo])
def list_all_bookings(db: Session = Depends(get_db)):
    """List every booking in the system"""
    bookings = BookingService(db).list_all_bookings()
    return [
        BookingInfo(
            id=b.id,
            journey_id=b.journey_id,
            user_name=b.user.name if b.user else "",
            user_email=b.user.email if b.user else "",
            seats=b.seats,
            pickup_lat=b.pickup_lat,
            pickup_lng=b.pickup_lng,
            created_at=as_utc(b.created_at)
        )
        for b in bookings
    ]

@router.put("/bookings/{booking_id}", response_model=BookingInfo)
def update_booking_seats(booking_id: str, payload: BookingSeatsUpdate, db: Session = Depends(get_db)):
    """Override a booking's seat count; capacity is not enforced"""
    booking = BookingService(db).admin_update_booking_seats(booking_id, payload.seats)
    return BookingInfo(
        id=booking.id,
        journey_id=booking.journey_id,
        user_name=booking.user.name if booking.user else "",
        user_email=booking.user.email if booking.user else "",
        seats=booking.seats,
        pickup_lat=booking.pickup_lat,
        pickup_lng=booking.pickup_lng,
        created_at=as_utc(booking.created_at)
    )

@router.delete("/bookings/{booking_id}", response_model=CancellationResult)
def delete_booking(booking_id: str, db: Session = Depends(get_db)):
    """Delete any booking regardless of owner or departure time"""
    released = BookingService(db).admin_delete_booking(booking_id)
    return CancellationResult(message="Booking deleted", released_seats=released)
