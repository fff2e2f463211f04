from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from src.auth.dependencies import get_current_user
from src.auth.schemas import CurrentUser
from src.bookings.booking_service import BookingService
from src.bookings.geo import GeoPoint
from src.bookings.schemas import BookingCreate, BookingResponse, CancellationResult
from src.clock import as_utc
from src.database import get_db
from src.models import Booking

router = APIRouter()

def _to_response(booking: Booking) -> BookingResponse:
    journey = booking.journey
    return BookingResponse(
        id=booking.id,
        journey_id=journey.id,
        origin_city=journey.origin_city.name if journey.origin_city else "",
        destination_city=journey.destination_city.name if journey.destination_city else "",
        departure_time=as_utc(journey.departure_time),
        seats=booking.seats,
        pickup_lat=booking.pickup_lat,
        pickup_lng=booking.pickup_lng,
        created_at=as_utc(booking.created_at)
    )

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book seats on a journey with a pickup point inside the origin city"""
    booking = BookingService(db).create_booking(
        traveller_id=current_user.id,
        journey_id=request.journey_id,
        seats=request.seats,
        pickup_point=GeoPoint(request.pickup_lat, request.pickup_lng)
    )
    return _to_response(booking)

@router.get("", response_model=List[BookingResponse])
def my_bookings(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the caller's bookings"""
    bookings = BookingService(db).list_traveller_bookings(current_user.id)
    return [_to_response(b) for b in bookings]

@router.delete("/{booking_id}", response_model=CancellationResult)
def cancel_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel one of the caller's bookings before departure"""
    released = BookingService(db).cancel_booking(current_user.id, booking_id)
    return CancellationResult(message="Booking cancelled", released_seats=released)
