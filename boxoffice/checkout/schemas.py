from pydantic import BaseModel
from typing import List


class CompletedCartResponse(BaseModel):
    order_id: str
    cart_id: str
    ticket_ids: List[str]
    total_tickets: int
