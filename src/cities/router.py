from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from src.database import get_db
from src.cities.schemas import CityInfo
from src.cities.service import CityService

router = APIRouter()

@router.get("", response_model=List[CityInfo])
def list_cities(db: Session = Depends(get_db)):
    """List all cities with their pickup zones"""
    return CityService.get_cities(db)
