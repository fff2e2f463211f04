from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from src.bookings.capacity_ledger import CapacityLedger, capacity_ledger
from src.bookings.geo import GeoPoint, is_within_radius, validate_coordinate
from src.clock import Clock, as_utc, utc_now
from src.exceptions import (
    BookingStorageError, DuplicateBookingError, ForbiddenError, InvalidRequestError,
    JourneyAlreadyDepartedError, NotFoundError, PastJourneyError, PickupOutOfRangeError
)
from src.logger_config import logger
from src.models import Booking, City, Journey


class BookingService:
    """Service for creating and cancelling seat bookings on journeys"""

    def __init__(self, db: Session, ledger: CapacityLedger = capacity_ledger, clock: Clock = utc_now):
        self.db = db
        self.ledger = ledger
        self.clock = clock

    def _get_journey(self, journey_id: str) -> Journey:
        journey = self.db.get(Journey, journey_id)
        if not journey:
            raise NotFoundError("Journey not found")
        return journey

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _has_departed(self, journey: Journey) -> bool:
        return as_utc(journey.departure_time) < self.clock()

    def create_booking(self, traveller_id: str, journey_id: str, seats: int, pickup_point: GeoPoint) -> Booking:
        """Reserve seats on a journey for a traveller.

        Validation runs in a fixed order: journey exists, journey is in the
        future, seat count and coordinates are sane, capacity is available,
        pickup is inside the origin city's radius, no booking exists yet for
        this traveller. The capacity hold is released on every failure after
        it was taken.
        """
        journey = self._get_journey(journey_id)

        if self._has_departed(journey):
            raise PastJourneyError()

        if seats <= 0:
            raise InvalidRequestError("Must book at least 1 seat")
        pickup_point = validate_coordinate(GeoPoint(*pickup_point))

        total_seats = journey.total_seats
        origin_city_id = journey.origin_city_id

        with self.ledger.reserve_seats(self.db, journey_id, seats, total_seats) as reservation:
            origin_city = self.db.get(City, origin_city_id)
            if origin_city is None:
                raise NotFoundError("Origin city not found")

            center = GeoPoint(origin_city.center_lat, origin_city.center_lng)
            if not is_within_radius(pickup_point, center, origin_city.pickup_radius_km):
                raise PickupOutOfRangeError(origin_city.name, origin_city.pickup_radius_km)

            existing = self.db.query(Booking.id).filter(
                Booking.journey_id == journey_id,
                Booking.user_id == traveller_id
            ).first()
            if existing:
                raise DuplicateBookingError()

            booking = Booking(
                journey_id=journey_id,
                user_id=traveller_id,
                seats=seats,
                pickup_lat=pickup_point.lat,
                pickup_lng=pickup_point.lng,
            )
            self.db.add(booking)

            try:
                reservation.commit()
            except IntegrityError:
                # Another process won the (journey, traveller) unique constraint
                raise DuplicateBookingError()
            except SQLAlchemyError as e:
                logger.opt(exception=e).error(f"Failed to store booking on journey {journey_id}")
                raise BookingStorageError()

        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id}: traveller {traveller_id} took {seats} seat(s) on journey {journey_id}, "
            f"{reservation.remaining_after} left"
        )
        return booking

    def cancel_booking(self, traveller_id: str, booking_id: str) -> int:
        """Cancel a traveller's own booking before departure; returns the released seat count"""
        booking = self._get_booking(booking_id)

        if booking.user_id != traveller_id:
            raise ForbiddenError("You can only cancel your own bookings")

        journey = self.db.get(Journey, booking.journey_id)
        if journey is not None and self._has_departed(journey):
            raise JourneyAlreadyDepartedError()

        seats = self.ledger.release_seats(self.db, booking.journey_id, booking)
        logger.info(f"Booking {booking_id} cancelled by traveller {traveller_id}, {seats} seat(s) released")
        return seats

    # Administrative variants: no ownership or time restrictions

    def admin_delete_booking(self, booking_id: str) -> int:
        booking = self._get_booking(booking_id)
        seats = self.ledger.release_seats(self.db, booking.journey_id, booking)
        logger.info(f"Booking {booking_id} deleted by administrator, {seats} seat(s) released")
        return seats

    def admin_update_booking_seats(self, booking_id: str, seats: int) -> Booking:
        booking = self.ledger.admin_override_seats(self.db, booking_id, seats)
        journey = self.db.get(Journey, booking.journey_id)
        booked = self.ledger.booked_seats(self.db, booking.journey_id)
        if journey is not None and booked > journey.total_seats:
            logger.warning(
                f"Administrator override overbooked journey {journey.id}: {booked}/{journey.total_seats} seats"
            )
        else:
            logger.info(f"Booking {booking_id} seats set to {seats} by administrator")
        return booking

    # Reads

    def available_seats(self, journey_id: str) -> int:
        journey = self._get_journey(journey_id)
        return self.ledger.available_seats(self.db, journey)

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.db.get(Booking, booking_id)

    def list_traveller_bookings(self, traveller_id: str) -> List[Booking]:
        return self.db.query(Booking).options(
            joinedload(Booking.journey).joinedload(Journey.origin_city),
            joinedload(Booking.journey).joinedload(Journey.destination_city)
        ).filter(Booking.user_id == traveller_id).order_by(Booking.created_at).all()

    def list_all_bookings(self) -> List[Booking]:
        return self.db.query(Booking).options(
            joinedload(Booking.user)
        ).order_by(Booking.created_at).all()

    def journey_passengers(self, journey_id: str) -> List[Booking]:
        """Bookings on a journey with their travellers, for the pickup list"""
        self._get_journey(journey_id)
        return self.db.query(Booking).options(
            joinedload(Booking.user)
        ).filter(Booking.journey_id == journey_id).order_by(Booking.created_at).all()
