from pydantic import BaseModel
from typing import List, Optional
from datetime import date


class CategoryAvailability(BaseModel):
    category: str
    total_capacity: int
    available: int
    sold_out: bool
    show_variant_id: Optional[int] = None


class DateAvailability(BaseModel):
    date: date
    categories: List[CategoryAvailability]
    sold_out: bool


class ShowAvailability(BaseModel):
    show_id: int
    title: str
    admission_mode: str
    dates: List[DateAvailability]


class SeatStatus(BaseModel):
    seat_label: str
    is_purchased: bool
    show_variant_id: Optional[int] = None


class SeatMapRow(BaseModel):
    row_id: int
    row_number: str
    category: str
    seats: List[SeatStatus]


class VenueInfo(BaseModel):
    id: int
    name: str
    address: Optional[str] = None


class SeatMap(BaseModel):
    show_id: int
    date: date
    venue: VenueInfo
    rows: List[SeatMapRow]
