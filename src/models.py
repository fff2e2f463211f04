import uuid
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, ForeignKey,
    CheckConstraint, UniqueConstraint, Enum as SAEnum
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from src.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())

# ================================
# Users & Roles
# ================================
class Role(str, Enum):
    """Closed set of caller roles; policy tables are keyed by it"""
    ADMIN = "admin"
    DRIVER = "driver"
    TRAVELLER = "traveller"

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(
        SAEnum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.TRAVELLER,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="user", passive_deletes=True)
    assigned_journeys = relationship("Journey", back_populates="driver")

# ================================
# Cities
# ================================
class City(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    center_lat = Column(Float, nullable=False)
    center_lng = Column(Float, nullable=False)
    pickup_radius_km = Column(Float, nullable=False)

# ================================
# Journeys & Bookings
# ================================
class Journey(Base):
    __tablename__ = "journeys"
    __table_args__ = (
        CheckConstraint("total_seats > 0", name="ck_journey_total_seats_positive"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    origin_city_id = Column(Integer, ForeignKey("cities.id"), nullable=False)
    destination_city_id = Column(Integer, ForeignKey("cities.id"), nullable=False)
    departure_time = Column(DateTime(timezone=True), nullable=False, index=True)
    total_seats = Column(Integer, nullable=False)
    driver_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    origin_city = relationship("City", foreign_keys=[origin_city_id])
    destination_city = relationship("City", foreign_keys=[destination_city_id])
    driver = relationship("User", back_populates="assigned_journeys")
    bookings = relationship(
        "Booking", back_populates="journey", cascade="all, delete-orphan", passive_deletes=True
    )

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("journey_id", "user_id", name="uq_booking_journey_user"),
        CheckConstraint("seats > 0", name="ck_booking_seats_positive"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    journey_id = Column(String(36), ForeignKey("journeys.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    seats = Column(Integer, nullable=False)
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    journey = relationship("Journey", back_populates="bookings")
    user = relationship("User", back_populates="bookings")
