"""
Booking System Module

This module owns seat reservations for bus journeys. It includes:

- Capacity ledger with per-journey locking so concurrent bookings never oversell a journey
- Pickup geofence check against the origin city's radius
- Traveller booking lifecycle (book, list, cancel before departure)
- Admin overrides (seat count changes, forced deletion)

Key Components:
- capacity_ledger.py: Seat accounting, journey locks and scoped reservations
- geo.py: Coordinate validation and great-circle distance
- booking_service.py: Booking workflow on top of the ledger
- router.py: FastAPI endpoints for travellers
- schemas.py: Pydantic models for booking requests and responses
"""

from .router import router
from .booking_service import BookingService
from .capacity_ledger import CapacityLedger, Reservation, capacity_ledger
from .geo import GeoPoint, haversine_distance, is_within_radius
from .schemas import (
    BookingCreate, BookingSeatsUpdate, BookingResponse, BookingInfo, CancellationResult
)

__all__ = [
    "router",
    "BookingService",
    "CapacityLedger",
    "Reservation",
    "capacity_ledger",
    "GeoPoint",
    "haversine_distance",
    "is_within_radius",
    "BookingCreate",
    "BookingSeatsUpdate",
    "BookingResponse",
    "BookingInfo",
    "CancellationResult"
]
