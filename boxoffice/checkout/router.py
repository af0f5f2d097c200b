from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from boxoffice.config import EngineConfig
from boxoffice.database import get_db
from boxoffice.dependencies import get_engine_config
from boxoffice.checkout.schemas import CompletedCartResponse
from boxoffice.checkout.workflow import CompleteCartWorkflow

router = APIRouter()

@router.post("/{cart_id}/complete", response_model=CompletedCartResponse)
def complete_cart(
    cart_id: str,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """Turn the cart into an order and issue its tickets.

    Seat conflicts and exhausted general access capacity answer 409; nothing
    is kept from a failed attempt.
    """
    completed = CompleteCartWorkflow(db, config).run(cart_id)
    return CompletedCartResponse(
        order_id=completed.order.id,
        cart_id=cart_id,
        ticket_ids=completed.ticket_ids,
        total_tickets=len(completed.ticket_ids),
    )
