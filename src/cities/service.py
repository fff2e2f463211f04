from sqlalchemy.orm import Session
from typing import List
from src.models import City

# Reference cities and their pickup zones
DEFAULT_CITIES = [
    {"name": "Jakarta", "center_lat": -6.2088, "center_lng": 106.8456, "pickup_radius_km": 10.0},
    {"name": "Bandung", "center_lat": -6.9175, "center_lng": 107.6191, "pickup_radius_km": 7.0},
]

class CityService:
    @staticmethod
    def get_cities(db: Session) -> List[City]:
        return db.query(City).order_by(City.id).all()

    @staticmethod
    def seed_default_cities(db: Session) -> int:
        """Insert the reference cities that are missing; returns how many were added"""
        existing = {name for (name,) in db.query(City.name).all()}
        added = 0
        for city in DEFAULT_CITIES:
            if city["name"] not in existing:
                db.add(City(**city))
                added += 1
        if added:
            db.commit()
        return added
