#!/usr/bin/env python3
"""
Seed Data Script

Creates the reference cities, the bootstrap admin account and a small set of
demo drivers and journeys for local development.

Usage:
    python seed_data.py
"""

from datetime import timedelta

from src.admin.admin_service import AdminManagementService
from src.auth.service import UserService
from src.cities.service import CityService
from src.clock import utc_now
from src.config import settings
from src.database import Base, SessionLocal, engine
from src.models import City, Journey, Role

DEMO_DRIVERS = [
    ("driver1@bustravel.com", "driver123", "Budi Santoso"),
    ("driver2@bustravel.com", "driver123", "Siti Rahma"),
]

def create_seed_data():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        print("🚀 Creating seed data for the bus booking system...")

        # 1. Cities
        added_cities = CityService.seed_default_cities(db)
        print(f"Cities: {added_cities} added")

        # 2. Admin account
        if AdminManagementService(db).ensure_admin_account():
            print(f"Admin created: {settings.ADMIN_EMAIL}")
        else:
            print(f"Admin already exists: {settings.ADMIN_EMAIL}")

        # 3. Drivers
        drivers = []
        for email, password, name in DEMO_DRIVERS:
            driver = UserService.get_user_by_email(db, email)
            if driver is None:
                driver = UserService.create_user(db, email=email, password=password, name=name, role=Role.DRIVER)
            drivers.append(driver)
        print(f"Drivers: {len(drivers)} available")

        # 4. Journeys in both directions for the next three days
        cities = db.query(City).order_by(City.id).all()
        journeys = []
        if len(cities) >= 2 and db.query(Journey).count() == 0:
            start = utc_now().replace(hour=7, minute=0, second=0, microsecond=0) + timedelta(days=1)
            for day in range(3):
                for index, (origin, destination) in enumerate([(cities[0], cities[1]), (cities[1], cities[0])]):
                    journeys.append(Journey(
                        origin_city_id=origin.id,
                        destination_city_id=destination.id,
                        departure_time=start + timedelta(days=day, hours=index * 6),
                        total_seats=12,
                        driver_id=drivers[index % len(drivers)].id
                    ))
            db.add_all(journeys)

        db.commit()
        print("✅ Successfully created seed data!")
        print(f"  - {len(cities)} cities")
        print(f"  - {len(drivers)} drivers")
        print(f"  - {len(journeys)} new journeys")

    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data()
