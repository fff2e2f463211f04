from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from src.auth.dependencies import get_current_user
from src.auth.schemas import CurrentUser
from src.database import get_db
from src.journeys.schemas import DriverJourney, JourneyPassengers
from src.journeys.service import JourneyService

router = APIRouter()

@router.get("/journeys", response_model=List[DriverJourney])
def my_journeys(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """List journeys assigned to the logged-in driver"""
    return JourneyService(db).list_for_driver(current_user.id)

@router.get("/journeys/{journey_id}/passengers", response_model=JourneyPassengers)
def journey_passengers(
    journey_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Passenger pickup points for one of the driver's journeys"""
    return JourneyService(db).passengers(journey_id, driver_id=current_user.id)
