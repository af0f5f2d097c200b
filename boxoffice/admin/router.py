from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from boxoffice.database import get_db
from boxoffice.admin.schemas import CapacityUpdate, CapacityUpdateResult, ShowStats, ShowTicketList
from boxoffice.admin.service import ShowAdminService

router = APIRouter()

@router.get("/shows/{show_id}/stats", response_model=ShowStats)
def get_show_stats(
    show_id: int,
    db: Session = Depends(get_db)
):
    """Tickets sold, capacity and sales per date for a show"""
    return ShowAdminService(db).show_stats(show_id)

@router.get("/shows/{show_id}/tickets", response_model=ShowTicketList)
def list_show_tickets(
    show_id: int,
    limit: int = Query(50, ge=1, le=500, description="Number of tickets to return"),
    offset: int = Query(0, ge=0, description="Number of tickets to skip"),
    db: Session = Depends(get_db)
):
    """Tickets issued for a show, newest first, with buyer info"""
    return ShowAdminService(db).list_show_tickets(show_id, limit=limit, offset=offset)

@router.put("/shows/{show_id}/capacity", response_model=CapacityUpdateResult)
def update_show_capacity(
    show_id: int,
    request: CapacityUpdate,
    db: Session = Depends(get_db)
):
    """Set the capacity override of a general access show"""
    return ShowAdminService(db).update_capacity_override(show_id, request.capacity_override)
