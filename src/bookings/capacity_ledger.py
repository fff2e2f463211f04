"""
Capacity ledger: the single choke point for seat increments and decrements.

Booked seats are never stored on their own; they are always the sum of the
journey's booking rows. What the ledger guarantees is that, for one journey,
"sum the bookings, decide, insert, commit" runs as one indivisible step.
Two layers provide that:

- an in-process lock keyed by journey id (threads of this worker), and
- a row lock on the journey (``SELECT ... FOR UPDATE``) for other processes
  sharing a PostgreSQL database.

Unrelated journeys never wait on each other.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.exceptions import InsufficientCapacityError, InvalidRequestError, NotFoundError
from src.logger_config import logger
from src.models import Booking, Journey


class KeyedLocks:
    """Lazily created mutex per key"""

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}

    def get(self, key: str) -> threading.Lock:
        lock = self._locks.get(key)
        if lock is None:
            # setdefault is atomic, so racing creators end up sharing one lock
            lock = self._locks.setdefault(key, threading.Lock())
        return lock

    def discard(self, key: str) -> None:
        self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


class Reservation:
    """Provisional hold on seats; only ``commit`` makes it durable"""

    HELD = "held"
    COMMITTED = "committed"
    RELEASED = "released"

    def __init__(self, db: Session, journey_id: str, seats: int, booked_before: int, total_capacity: int):
        self.db = db
        self.journey_id = journey_id
        self.seats = seats
        self.booked_before = booked_before
        self.total_capacity = total_capacity
        self.state = self.HELD

    @property
    def remaining_after(self) -> int:
        return self.total_capacity - self.booked_before - self.seats

    def commit(self) -> None:
        if self.state != self.HELD:
            raise RuntimeError(f"Reservation on journey {self.journey_id} is already {self.state}")
        self.db.commit()
        self.state = self.COMMITTED

    def release(self) -> None:
        if self.state != self.HELD:
            return
        self.db.rollback()
        self.state = self.RELEASED


class CapacityLedger:
    def __init__(self):
        self._locks = KeyedLocks()

    @contextmanager
    def journey_lock(self, journey_id: str) -> Iterator[None]:
        with self._locks.get(journey_id):
            yield

    def forget(self, journey_id: str) -> None:
        """Drop bookkeeping for a journey that no longer exists"""
        self._locks.discard(journey_id)

    def booked_seats(self, db: Session, journey_id: str) -> int:
        total = db.query(func.coalesce(func.sum(Booking.seats), 0)).filter(
            Booking.journey_id == journey_id
        ).scalar()
        return int(total or 0)

    def booked_seats_by_journey(self, db: Session, journey_ids: Iterable[str]) -> Dict[str, int]:
        journey_ids = list(journey_ids)
        if not journey_ids:
            return {}
        rows = db.query(Booking.journey_id, func.sum(Booking.seats)).filter(
            Booking.journey_id.in_(journey_ids)
        ).group_by(Booking.journey_id).all()
        return {journey_id: int(total or 0) for journey_id, total in rows}

    def available_seats(self, db: Session, journey: Journey) -> int:
        return journey.total_seats - self.booked_seats(db, journey.id)

    @contextmanager
    def reserve_seats(
        self,
        db: Session,
        journey_id: str,
        requested_seats: int,
        total_capacity: int,
    ) -> Iterator[Reservation]:
        """Hold ``requested_seats`` on a journey for the duration of the block.

        The caller stages its booking row inside the block and calls
        ``reservation.commit()``. Leaving the block any other way (an
        exception, or simply not committing) rolls the session back, which
        releases the hold.

        Raises:
            InvalidRequestError: requested_seats is not positive
            NotFoundError: the journey no longer exists
            InsufficientCapacityError: the journey cannot fit the request
        """
        if requested_seats <= 0:
            raise InvalidRequestError("Must book at least 1 seat")

        with self.journey_lock(journey_id):
            # Cross-process guard; the lock itself is a no-op on SQLite
            locked = db.query(Journey.id).filter(Journey.id == journey_id).with_for_update().one_or_none()
            if locked is None:
                db.rollback()
                raise NotFoundError("Journey not found")

            booked = self.booked_seats(db, journey_id)
            if booked + requested_seats > total_capacity:
                db.rollback()
                raise InsufficientCapacityError(requested_seats, total_capacity - booked)

            reservation = Reservation(db, journey_id, requested_seats, booked, total_capacity)
            logger.debug(
                f"Holding {requested_seats} seat(s) on journey {journey_id} ({booked}/{total_capacity} booked)"
            )
            try:
                yield reservation
            finally:
                if reservation.state == Reservation.HELD:
                    reservation.release()
                    logger.debug(f"Released uncommitted hold of {requested_seats} seat(s) on journey {journey_id}")

    def release_seats(self, db: Session, journey_id: str, booking: Booking) -> int:
        """Give a booking's seats back to the journey by removing the booking.

        The row is re-read under the journey lock, so of two callers holding
        the same booking only the first releases anything; the second gets
        ``NotFoundError``.
        """
        booking_id = booking.id
        with self.journey_lock(journey_id):
            try:
                seats = db.query(Booking.seats).filter(
                    Booking.id == booking_id
                ).with_for_update().scalar()
                if seats is None:
                    raise NotFoundError("Booking not found")

                deleted = db.query(Booking).filter(
                    Booking.id == booking_id
                ).delete(synchronize_session=False)
                if deleted == 0:
                    raise NotFoundError("Booking not found")
                db.commit()
            except Exception:
                db.rollback()
                raise

        if booking in db:
            db.expunge(booking)
        return seats

    def admin_override_seats(self, db: Session, booking_id: str, new_seat_count: int) -> Booking:
        """Set a booking's seat count without any capacity check"""
        if new_seat_count <= 0:
            raise InvalidRequestError("Seat count must be at least 1")

        booking = db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")

        with self.journey_lock(booking.journey_id):
            try:
                booking.seats = new_seat_count
                db.commit()
            except Exception:
                db.rollback()
                raise
        db.refresh(booking)
        return booking


capacity_ledger = CapacityLedger()
