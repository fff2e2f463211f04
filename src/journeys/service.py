from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, joinedload

from src.bookings.booking_service import BookingService
from src.bookings.capacity_ledger import CapacityLedger, capacity_ledger
from src.cities.schemas import CityInfo
from src.clock import Clock, as_utc, utc_now
from src.exceptions import ForbiddenError, InvalidRequestError, NotFoundError
from src.journeys.schemas import (
    AdminJourney, AvailableJourney, DriverInfo, DriverJourney, JourneyCreate,
    JourneyPassengers, JourneyUpdate, PassengerPickup
)
from src.logger_config import logger
from src.models import City, Journey, Role, User


class JourneyService:
    """Service for journey listings and administrative journey management"""

    def __init__(self, db: Session, ledger: CapacityLedger = capacity_ledger, clock: Clock = utc_now):
        self.db = db
        self.ledger = ledger
        self.clock = clock

    def _query(self):
        return self.db.query(Journey).options(
            joinedload(Journey.origin_city),
            joinedload(Journey.destination_city),
            joinedload(Journey.driver)
        )

    def get_journey(self, journey_id: str) -> Journey:
        journey = self._query().filter(Journey.id == journey_id).first()
        if not journey:
            raise NotFoundError("Journey not found")
        return journey

    def _with_booked(self, journeys: List[Journey]) -> List[Tuple[Journey, int]]:
        booked = self.ledger.booked_seats_by_journey(self.db, [j.id for j in journeys])
        return [(j, booked.get(j.id, 0)) for j in journeys]

    # Public views

    def _to_available(self, journey: Journey, booked: int) -> AvailableJourney:
        return AvailableJourney(
            id=journey.id,
            origin_city=CityInfo.model_validate(journey.origin_city),
            destination_city=CityInfo.model_validate(journey.destination_city),
            departure_time=as_utc(journey.departure_time),
            available_seats=journey.total_seats - booked,
            has_driver=journey.driver_id is not None
        )

    def list_available(self) -> List[AvailableJourney]:
        """Future journeys with their remaining seats, soonest first"""
        now = self.clock()
        journeys = [
            j for j in self._query().order_by(Journey.departure_time).all()
            if as_utc(j.departure_time) >= now
        ]
        return [self._to_available(j, booked) for j, booked in self._with_booked(journeys)]

    def get_available(self, journey_id: str) -> AvailableJourney:
        journey = self.get_journey(journey_id)
        return self._to_available(journey, self.ledger.booked_seats(self.db, journey.id))

    # Admin views

    def list_all(self) -> List[AdminJourney]:
        journeys = self._query().order_by(Journey.departure_time).all()
        return [
            AdminJourney(
                id=j.id,
                origin_city=j.origin_city.name,
                destination_city=j.destination_city.name,
                departure_time=as_utc(j.departure_time),
                total_seats=j.total_seats,
                booked_seats=booked,
                driver=DriverInfo(id=j.driver.id, name=j.driver.name, email=j.driver.email) if j.driver else None
            )
            for j, booked in self._with_booked(journeys)
        ]

    def _require_city(self, city_id: int, label: str) -> City:
        city = self.db.get(City, city_id)
        if not city:
            raise InvalidRequestError(f"Invalid {label} city")
        return city

    def create_journey(self, data: JourneyCreate) -> Journey:
        origin = self._require_city(data.origin_city_id, "origin")
        destination = self._require_city(data.destination_city_id, "destination")
        if origin.id == destination.id:
            raise InvalidRequestError("Origin and destination must be different")

        journey = Journey(
            origin_city_id=origin.id,
            destination_city_id=destination.id,
            departure_time=as_utc(data.departure_time),
            total_seats=data.total_seats
        )
        self.db.add(journey)
        self.db.commit()
        self.db.refresh(journey)
        logger.info(f"Journey {journey.id} created: {origin.name} -> {destination.name}, {journey.total_seats} seats")
        return journey

    def update_journey(self, journey_id: str, data: JourneyUpdate) -> Journey:
        journey = self.db.get(Journey, journey_id)
        if not journey:
            raise NotFoundError("Journey not found")

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if "origin_city_id" in update_data:
            self._require_city(update_data["origin_city_id"], "origin")
        if "destination_city_id" in update_data:
            self._require_city(update_data["destination_city_id"], "destination")
        if "departure_time" in update_data:
            update_data["departure_time"] = as_utc(update_data["departure_time"])

        origin_id = update_data.get("origin_city_id", journey.origin_city_id)
        destination_id = update_data.get("destination_city_id", journey.destination_city_id)
        if origin_id == destination_id:
            raise InvalidRequestError("Origin and destination must be different")

        # Capacity changes must not interleave with a reservation's check-and-commit
        with self.ledger.journey_lock(journey_id):
            for field, value in update_data.items():
                setattr(journey, field, value)
            self.db.commit()

        self.db.refresh(journey)
        booked = self.ledger.booked_seats(self.db, journey.id)
        if booked > journey.total_seats:
            logger.warning(f"Journey {journey.id} now has {booked} booked seats over a capacity of {journey.total_seats}")
        return journey

    def delete_journey(self, journey_id: str) -> None:
        journey = self.db.get(Journey, journey_id)
        if not journey:
            raise NotFoundError("Journey not found")

        with self.ledger.journey_lock(journey_id):
            # Bookings go with it through the cascade
            self.db.delete(journey)
            self.db.commit()
        self.ledger.forget(journey_id)
        logger.info(f"Journey {journey_id} deleted")

    def assign_driver(self, journey_id: str, driver_id: str) -> Journey:
        driver = self.db.get(User, driver_id)
        if not driver:
            raise NotFoundError("Driver not found")
        if driver.role != Role.DRIVER:
            raise InvalidRequestError("User is not a driver")

        journey = self.db.get(Journey, journey_id)
        if not journey:
            raise NotFoundError("Journey not found")

        journey.driver_id = driver.id
        self.db.commit()
        self.db.refresh(journey)
        logger.info(f"Driver {driver.id} assigned to journey {journey.id}")
        return journey

    def passengers(self, journey_id: str, driver_id: Optional[str] = None) -> JourneyPassengers:
        """Pickup list; when driver_id is given the journey must be assigned to that driver"""
        journey = self.get_journey(journey_id)
        if driver_id is not None and journey.driver_id != driver_id:
            raise ForbiddenError("You are not assigned to this journey")

        bookings = BookingService(self.db, self.ledger, self.clock).journey_passengers(journey.id)

        return JourneyPassengers(
            journey_id=journey.id,
            origin_city=journey.origin_city.name,
            destination_city=journey.destination_city.name,
            departure_time=as_utc(journey.departure_time),
            passengers=[
                PassengerPickup(
                    booking_id=b.id,
                    passenger_name=b.user.name if b.user else "",
                    seats=b.seats,
                    pickup_lat=b.pickup_lat,
                    pickup_lng=b.pickup_lng
                )
                for b in bookings
            ]
        )

    # Driver views

    def list_for_driver(self, driver_id: str) -> List[DriverJourney]:
        journeys = self._query().filter(Journey.driver_id == driver_id).order_by(Journey.departure_time).all()
        return [
            DriverJourney(
                id=j.id,
                origin_city=j.origin_city.name,
                destination_city=j.destination_city.name,
                departure_time=as_utc(j.departure_time),
                total_seats=j.total_seats,
                booked_seats=booked
            )
            for j, booked in self._with_booked(journeys)
        ]
