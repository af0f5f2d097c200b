from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from boxoffice.database import get_db
from boxoffice.inventory.schemas import SeatMap, ShowAvailability
from boxoffice.inventory.service import InventoryService

router = APIRouter()

@router.get("/{show_id}/availability", response_model=ShowAvailability)
def get_show_availability(
    show_id: int,
    db: Session = Depends(get_db)
):
    """Remaining capacity per date and category"""
    return InventoryService(db).get_availability(show_id)

@router.get("/{show_id}/seats", response_model=SeatMap)
def get_seat_map(
    show_id: int,
    date: str = Query(..., description="Show date (YYYY-MM-DD or ISO timestamp)"),
    db: Session = Depends(get_db)
):
    """Seat-by-seat purchased/available grid for one show date"""
    return InventoryService(db).get_seat_map(show_id, date)
