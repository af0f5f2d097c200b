from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime


class DateSales(BaseModel):
    date: date
    tickets_sold: int
    capacity: int


class ShowStats(BaseModel):
    show_id: int
    title: str
    admission_mode: str
    venue: str
    total_tickets_sold: int
    capacity_per_date: int
    total_capacity: int
    percentage_sold: float
    sales_by_date: List[DateSales]
    tickets_by_category: Dict[str, int]


class ShowTicket(BaseModel):
    id: str
    order_id: str
    row_number: Optional[str] = None
    seat_label: str
    category: str
    show_date: date
    status: str
    created_at: Optional[datetime] = None
    customer_name: str
    customer_email: Optional[str] = None


class ShowTicketList(BaseModel):
    show_id: int
    total: int
    tickets: List[ShowTicket]


class CapacityUpdate(BaseModel):
    capacity_override: Optional[int] = Field(None, ge=0, description="New capacity per date; null falls back to the venue capacity")


class CapacityUpdateResult(BaseModel):
    show_id: int
    capacity_override: Optional[int] = None
    effective_capacity: int
