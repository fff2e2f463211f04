import threading
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from src.bookings.booking_service import BookingService
from src.bookings.capacity_ledger import CapacityLedger
from src.bookings.geo import GeoPoint
from src.cities.service import CityService
from src.clock import utc_now
from src.database import Base, SessionLocal, build_engine
from src.exceptions import (
    DuplicateBookingError, ForbiddenError, InsufficientCapacityError, InvalidRequestError,
    JourneyAlreadyDepartedError, NotFoundError, PastJourneyError, PickupOutOfRangeError
)
from src.models import City, Journey, Role, User

from tests.conftest import BANDUNG_CENTER, JAKARTA_CENTER, JAKARTA_PICKUP

PICKUP = GeoPoint(*JAKARTA_PICKUP)


@pytest.fixture
def ledger() -> CapacityLedger:
    return CapacityLedger()


@pytest.fixture
def service(db, ledger) -> BookingService:
    return BookingService(db, ledger=ledger)


@pytest.mark.unit
class TestCreateBooking:
    def test_books_seats(self, service, make_journey, make_user):
        journey = make_journey(total_seats=4)
        traveller = make_user()

        booking = service.create_booking(traveller.id, journey.id, 2, PICKUP)

        assert booking.seats == 2
        assert booking.user_id == traveller.id
        assert (booking.pickup_lat, booking.pickup_lng) == JAKARTA_PICKUP
        assert service.available_seats(journey.id) == 2

    def test_pickup_at_city_center(self, service, make_journey, make_user):
        journey = make_journey()
        booking = service.create_booking(make_user().id, journey.id, 1, GeoPoint(*JAKARTA_CENTER))
        assert booking.id

    def test_unknown_journey(self, service, make_user):
        with pytest.raises(NotFoundError):
            service.create_booking(make_user().id, 'missing', 1, PICKUP)

    def test_past_journey(self, service, make_journey, make_user):
        journey = make_journey(departure_time=utc_now() - timedelta(hours=1))
        with pytest.raises(PastJourneyError):
            service.create_booking(make_user().id, journey.id, 1, PICKUP)

    def test_past_check_uses_injected_clock(self, db, ledger, make_journey, make_user):
        journey = make_journey(departure_time=utc_now() + timedelta(hours=1))
        later = BookingService(db, ledger=ledger, clock=lambda: utc_now() + timedelta(days=1))

        with pytest.raises(PastJourneyError):
            later.create_booking(make_user().id, journey.id, 1, PICKUP)

    @pytest.mark.parametrize('seats', [0, -3])
    def test_non_positive_seats(self, service, make_journey, make_user, seats):
        journey = make_journey()
        with pytest.raises(InvalidRequestError):
            service.create_booking(make_user().id, journey.id, seats, PICKUP)

    def test_invalid_coordinates(self, service, make_journey, make_user):
        journey = make_journey()
        with pytest.raises(InvalidRequestError):
            service.create_booking(make_user().id, journey.id, 1, GeoPoint(123.0, 106.8))

    def test_over_capacity(self, service, make_journey, make_user):
        journey = make_journey(total_seats=4)
        service.create_booking(make_user().id, journey.id, 3, PICKUP)

        with pytest.raises(InsufficientCapacityError) as exc_info:
            service.create_booking(make_user().id, journey.id, 2, PICKUP)

        assert exc_info.value.available == 1
        assert service.available_seats(journey.id) == 1

    def test_pickup_outside_origin_zone(self, service, make_journey, make_user):
        journey = make_journey(origin='Jakarta', destination='Bandung')

        with pytest.raises(PickupOutOfRangeError) as exc_info:
            service.create_booking(make_user().id, journey.id, 1, GeoPoint(*BANDUNG_CENTER))

        assert 'Jakarta' in exc_info.value.message
        assert service.available_seats(journey.id) == journey.total_seats

    def test_duplicate_booking(self, service, make_journey, make_user):
        journey = make_journey(total_seats=10)
        traveller = make_user()
        service.create_booking(traveller.id, journey.id, 1, PICKUP)

        with pytest.raises(DuplicateBookingError):
            service.create_booking(traveller.id, journey.id, 1, PICKUP)

        assert service.available_seats(journey.id) == 9

    def test_journey_deleted_while_booking(self, db, ledger, make_journey, make_user):
        journey_id = make_journey().id
        traveller_id = make_user().id

        def clock_deleting_journey():
            # Runs right after the journey was loaded, before seats are reserved
            other = SessionLocal()
            try:
                other.query(Journey).filter(Journey.id == journey_id).delete(synchronize_session=False)
                other.commit()
            finally:
                other.close()
            return utc_now()

        racing = BookingService(db, ledger=ledger, clock=clock_deleting_journey)

        with pytest.raises(NotFoundError):
            racing.create_booking(traveller_id, journey_id, 1, PICKUP)

    def test_capacity_checked_before_geofence(self, service, make_journey, make_user):
        journey = make_journey(total_seats=1)
        with pytest.raises(InsufficientCapacityError):
            service.create_booking(make_user().id, journey.id, 2, GeoPoint(*BANDUNG_CENTER))


@pytest.mark.unit
class TestCancelBooking:
    def test_cancel_releases_seats(self, service, make_journey, make_user):
        journey = make_journey(total_seats=4)
        traveller = make_user()
        booking = service.create_booking(traveller.id, journey.id, 3, PICKUP)

        assert service.cancel_booking(traveller.id, booking.id) == 3
        assert service.available_seats(journey.id) == 4
        assert service.get_booking(booking.id) is None

    def test_cancel_someone_elses_booking(self, service, make_journey, make_user):
        journey = make_journey()
        booking = service.create_booking(make_user().id, journey.id, 1, PICKUP)

        with pytest.raises(ForbiddenError):
            service.cancel_booking(make_user().id, booking.id)

    def test_cancel_unknown_booking(self, service, make_user):
        with pytest.raises(NotFoundError):
            service.cancel_booking(make_user().id, 'missing')

    def test_cancel_after_departure(self, db, service, ledger, make_journey, make_user):
        journey = make_journey(departure_time=utc_now() + timedelta(hours=1))
        traveller = make_user()
        booking = service.create_booking(traveller.id, journey.id, 1, PICKUP)

        later = BookingService(db, ledger=ledger, clock=lambda: utc_now() + timedelta(days=1))
        with pytest.raises(JourneyAlreadyDepartedError):
            later.cancel_booking(traveller.id, booking.id)

    def test_cancel_twice(self, service, make_journey, make_user):
        journey = make_journey(total_seats=4)
        traveller = make_user()
        booking_id = service.create_booking(traveller.id, journey.id, 2, PICKUP).id

        assert service.cancel_booking(traveller.id, booking_id) == 2
        with pytest.raises(NotFoundError):
            service.cancel_booking(traveller.id, booking_id)
        assert service.available_seats(journey.id) == 4

    def test_rebook_after_cancel(self, service, make_journey, make_user):
        journey = make_journey(total_seats=2)
        traveller = make_user()
        booking = service.create_booking(traveller.id, journey.id, 2, PICKUP)
        service.cancel_booking(traveller.id, booking.id)

        again = service.create_booking(traveller.id, journey.id, 2, PICKUP)

        assert again.seats == 2


@pytest.mark.unit
class TestAdminOperations:
    def test_admin_delete_ignores_departure(self, db, ledger, make_journey, make_user):
        journey = make_journey(departure_time=utc_now() + timedelta(hours=1))
        booking = BookingService(db, ledger=ledger).create_booking(make_user().id, journey.id, 2, PICKUP)

        later = BookingService(db, ledger=ledger, clock=lambda: utc_now() + timedelta(days=1))

        assert later.admin_delete_booking(booking.id) == 2
        assert later.available_seats(journey.id) == journey.total_seats

    def test_admin_override_can_overbook(self, service, make_journey, make_user):
        journey = make_journey(total_seats=4)
        booking = service.create_booking(make_user().id, journey.id, 2, PICKUP)

        updated = service.admin_update_booking_seats(booking.id, 6)

        assert updated.seats == 6
        assert service.available_seats(journey.id) == -2

    def test_listings(self, service, make_journey, make_user):
        journey = make_journey(total_seats=10)
        alice, bob = make_user(), make_user()
        service.create_booking(alice.id, journey.id, 1, PICKUP)
        service.create_booking(bob.id, journey.id, 2, PICKUP)

        mine = service.list_traveller_bookings(alice.id)

        assert [b.seats for b in mine] == [1]
        assert mine[0].journey.origin_city.name == 'Jakarta'
        assert len(service.list_all_bookings()) == 2


@pytest.fixture
def file_sessions(tmp_path):
    """File-backed database so every thread gets its own connection"""
    file_engine = build_engine(f'sqlite:///{tmp_path / "concurrency.db"}')
    Base.metadata.create_all(bind=file_engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    yield factory
    file_engine.dispose()


def _setup_concurrent_journey(factory, total_seats, traveller_count):
    db = factory()
    try:
        CityService.seed_default_cities(db)
        jakarta = db.query(City).filter(City.name == 'Jakarta').one()
        bandung = db.query(City).filter(City.name == 'Bandung').one()
        journey = Journey(
            origin_city_id=jakarta.id,
            destination_city_id=bandung.id,
            departure_time=utc_now() + timedelta(days=1),
            total_seats=total_seats,
        )
        travellers = [
            User(email=f'rush{i}@example.com', password_hash='x', name=f'Rush {i}', role=Role.TRAVELLER)
            for i in range(traveller_count)
        ]
        db.add(journey)
        db.add_all(travellers)
        db.commit()
        return journey.id, [t.id for t in travellers]
    finally:
        db.close()


def _run_concurrently(factory, ledger, journey_id, user_ids, seats):
    outcomes = []
    outcomes_lock = threading.Lock()
    barrier = threading.Barrier(len(user_ids))

    def book(user_id):
        db = factory()
        try:
            barrier.wait()
            BookingService(db, ledger=ledger).create_booking(user_id, journey_id, seats, PICKUP)
            outcome = 'booked'
        except InsufficientCapacityError:
            outcome = 'full'
        except DuplicateBookingError:
            outcome = 'duplicate'
        finally:
            db.close()
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=book, args=(user_id,)) for user_id in user_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


@pytest.mark.integration
class TestConcurrentBookings:
    def test_no_overbooking_under_contention(self, file_sessions):
        ledger = CapacityLedger()
        journey_id, travellers = _setup_concurrent_journey(file_sessions, total_seats=4, traveller_count=10)

        outcomes = _run_concurrently(file_sessions, ledger, journey_id, travellers, seats=1)

        assert outcomes.count('booked') == 4
        assert outcomes.count('full') == 6
        db = file_sessions()
        try:
            assert ledger.booked_seats(db, journey_id) == 4
        finally:
            db.close()

    def test_same_traveller_racing_books_once(self, file_sessions):
        ledger = CapacityLedger()
        journey_id, travellers = _setup_concurrent_journey(file_sessions, total_seats=10, traveller_count=1)

        outcomes = _run_concurrently(file_sessions, ledger, journey_id, travellers * 5, seats=1)

        assert outcomes.count('booked') == 1
        assert outcomes.count('duplicate') == 4
        db = file_sessions()
        try:
            assert ledger.booked_seats(db, journey_id) == 1
        finally:
            db.close()
