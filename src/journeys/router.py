from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from src.database import get_db
from src.journeys.schemas import AvailableJourney
from src.journeys.service import JourneyService

router = APIRouter()

@router.get("", response_model=List[AvailableJourney])
def list_journeys(db: Session = Depends(get_db)):
    """List upcoming journeys open for booking"""
    return JourneyService(db).list_available()

@router.get("/{journey_id}", response_model=AvailableJourney)
def get_journey(journey_id: str, db: Session = Depends(get_db)):
    """Get journey details with remaining seats"""
    return JourneyService(db).get_available(journey_id)
