"""Order-completion workflow.

Each step is two-phase: ``invoke`` returns a ``StepResponse`` carrying the
step's result and an undo token, and ``compensate`` receives that token back
if a later step fails. The orchestrator compensates completed steps in
reverse order before re-raising, including when the run is interrupted
(``BaseException``), so cancellation never leaves tickets behind.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from boxoffice.cart.service_fee import ServiceFeeHook
from boxoffice.catalog import CatalogService
from boxoffice.checkout.guard import CheckoutGuard
from boxoffice.checkout.issuance import TicketIssuanceService
from boxoffice.config import EngineConfig
from boxoffice.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from boxoffice.models import Cart, Order, OrderLineItem


@dataclass
class StepResponse:
    result: Any
    undo_token: Any = None


class WorkflowStep:
    name = "step"

    def invoke(self, context: Dict[str, Any]) -> StepResponse:
        raise NotImplementedError

    def compensate(self, undo_token: Any) -> None:
        """Steps without side effects have nothing to undo"""


class Workflow:
    def __init__(self, name: str, steps: List[WorkflowStep]):
        self.name = name
        self.steps = steps

    def run(self, context: Dict[str, Any]) -> Dict[str, Any]:
        completed: List[Tuple[WorkflowStep, Any]] = []
        try:
            for step in self.steps:
                response = step.invoke(context)
                completed.append((step, response.undo_token))
                context[step.name] = response.result
        except BaseException as e:
            logger.warning(f"Workflow {self.name} failed at step {len(completed) + 1}: {e!r}; compensating")
            self._compensate(completed)
            raise
        return context

    def _compensate(self, completed: List[Tuple[WorkflowStep, Any]]) -> None:
        for step, undo_token in reversed(completed):
            try:
                step.compensate(undo_token)
            except Exception:
                logger.opt(exception=True).error(
                    f"Compensation of step {step.name} in workflow {self.name} failed"
                )

# ================================
# Complete-cart steps
# ================================
class RefreshServiceFeeStep(WorkflowStep):
    name = "refresh_service_fee"

    def __init__(self, db: Session, config: EngineConfig):
        self.hook = ServiceFeeHook(db, config)

    def invoke(self, context):
        return StepResponse(self.hook.recalculate(context["cart_id"]))


class ValidateCartStep(WorkflowStep):
    name = "validate_cart"

    def __init__(self, db: Session, catalog: CatalogService):
        self.db = db
        self.guard = CheckoutGuard(db, catalog)

    def invoke(self, context):
        cart = _load_cart(self.db, context["cart_id"])
        if cart.completed_at is not None:
            raise ConflictError("Cart has already been completed")
        if not cart.items:
            raise InvalidArgumentError("Cart has no line items")
        return StepResponse(self.guard.check(cart.items))


class CreateOrderStep(WorkflowStep):
    name = "create_order"

    def __init__(self, db: Session):
        self.db = db

    def invoke(self, context):
        cart_id = context["cart_id"]
        try:
            # Claim the cart; a concurrent completion of the same cart loses here
            claimed = self.db.execute(
                update(Cart)
                .where(Cart.id == cart_id, Cart.completed_at.is_(None))
                .values(completed_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                raise ConflictError("Cart has already been completed")

            cart = _load_cart(self.db, cart_id)
            order = Order(
                cart_id=cart.id,
                email=cart.email,
                customer_first_name=cart.customer_first_name,
                customer_last_name=cart.customer_last_name,
                currency_code=cart.currency_code,
            )
            order.items = [
                OrderLineItem(
                    title=item.title,
                    product_id=item.product_id,
                    product_title=item.product_title,
                    variant_id=item.variant_id,
                    variant_title=item.variant_title,
                    variant_options=item.variant_options,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    item_metadata=item.item_metadata,
                    position=item.position,
                )
                for item in cart.items
            ]
            self.db.add(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Created order {order.id} from cart {cart_id}")
        return StepResponse(order, (order.id, cart_id))

    def compensate(self, undo_token):
        order_id, cart_id = undo_token
        try:
            order = self.db.query(Order).filter(Order.id == order_id).first()
            if order:
                self.db.delete(order)
            cart = self.db.query(Cart).filter(Cart.id == cart_id).first()
            if cart:
                cart.completed_at = None
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Rolled back order {order_id}; cart {cart_id} reopened")


class CreateTicketsStep(WorkflowStep):
    name = "create_tickets"

    def __init__(self, db: Session, catalog: CatalogService):
        self.issuance = TicketIssuanceService(db, catalog)

    def invoke(self, context):
        order = context[CreateOrderStep.name]
        ticket_ids = self.issuance.issue_tickets(order.id, order.items)
        return StepResponse(ticket_ids, ticket_ids)

    def compensate(self, undo_token):
        self.issuance.delete_tickets(undo_token)


@dataclass
class CompletedCart:
    order: Order
    ticket_ids: List[str] = field(default_factory=list)


class CompleteCartWorkflow:
    """Turns a cart into an order plus its tickets, or into nothing at all"""

    def __init__(self, db: Session, config: EngineConfig, extra_steps: Optional[List[WorkflowStep]] = None):
        self.db = db
        catalog = CatalogService(db)
        steps = [
            RefreshServiceFeeStep(db, config),
            ValidateCartStep(db, catalog),
            CreateOrderStep(db),
            CreateTicketsStep(db, catalog),
        ]
        self.workflow = Workflow("complete-cart-with-tickets", steps + list(extra_steps or []))

    def run(self, cart_id: str) -> CompletedCart:
        context = self.workflow.run({"cart_id": cart_id})
        return CompletedCart(
            order=context[CreateOrderStep.name],
            ticket_ids=context[CreateTicketsStep.name],
        )


def _load_cart(db: Session, cart_id: str) -> Cart:
    cart = db.query(Cart).options(selectinload(Cart.items)).filter(Cart.id == cart_id).first()
    if not cart:
        raise NotFoundError("Cart not found")
    return cart
