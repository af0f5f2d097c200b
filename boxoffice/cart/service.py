from decimal import Decimal
from typing import List

from loguru import logger
from sqlalchemy.orm import Session, selectinload

from boxoffice.cart.schemas import CartCreate, CartDetail, LineItem, LineItemCreate, LineItemUpdate
from boxoffice.cart.service_fee import ServiceFeeHook, is_service_fee
from boxoffice.config import EngineConfig
from boxoffice.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from boxoffice.models import Cart, CartLineItem


class CartService:
    """Thin cart collaborator; every mutation re-runs the service fee hook"""

    def __init__(self, db: Session, config: EngineConfig):
        self.db = db
        self.fee_hook = ServiceFeeHook(db, config)

    def create_cart(self, request: CartCreate) -> Cart:
        cart = Cart(
            email=request.email,
            customer_first_name=request.customer_first_name,
            customer_last_name=request.customer_last_name,
            currency_code=request.currency_code,
        )
        self.db.add(cart)
        self.db.commit()
        return cart

    def get_cart(self, cart_id: str) -> Cart:
        cart = self.db.query(Cart).options(selectinload(Cart.items)).filter(Cart.id == cart_id).first()
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    def add_line_item(self, cart_id: str, request: LineItemCreate) -> Cart:
        cart = self._open_cart(cart_id)
        item = CartLineItem(
            title=request.title,
            product_id=request.product_id,
            product_title=request.product_title or request.title,
            variant_id=request.variant_id,
            variant_title=request.variant_title,
            variant_options=request.variant_options,
            unit_price=request.unit_price,
            quantity=request.quantity,
            item_metadata=request.metadata,
            position=max((i.position for i in cart.items), default=-1) + 1,
        )
        cart.items.append(item)
        self.db.commit()
        logger.info(f"Added line item {item.id} to cart {cart_id}")
        return self._refresh_fee(cart_id)

    def update_line_item(self, cart_id: str, item_id: str, request: LineItemUpdate) -> Cart:
        cart = self._open_cart(cart_id)
        item = self._find_item(cart, item_id)
        if request.quantity is not None:
            item.quantity = request.quantity
        if request.metadata is not None:
            item.item_metadata = request.metadata
        self.db.commit()
        return self._refresh_fee(cart_id)

    def remove_line_item(self, cart_id: str, item_id: str) -> Cart:
        cart = self._open_cart(cart_id)
        item = self._find_item(cart, item_id)
        cart.items.remove(item)
        self.db.commit()
        logger.info(f"Removed line item {item_id} from cart {cart_id}")
        return self._refresh_fee(cart_id)

    def _refresh_fee(self, cart_id: str) -> Cart:
        self.fee_hook.recalculate(cart_id)
        return self.get_cart(cart_id)

    def _open_cart(self, cart_id: str) -> Cart:
        cart = self.get_cart(cart_id)
        if cart.completed_at is not None:
            raise ConflictError("Cart has already been completed")
        return cart

    @staticmethod
    def _find_item(cart: Cart, item_id: str) -> CartLineItem:
        for item in cart.items:
            if item.id == item_id:
                if is_service_fee(item):
                    raise InvalidArgumentError("The service fee line item is managed automatically")
                return item
        raise NotFoundError("Line item not found")

    @staticmethod
    def to_detail(cart: Cart) -> CartDetail:
        items: List[LineItem] = []
        subtotal = Decimal("0")
        service_fee = Decimal("0")
        for item in cart.items:
            fee = is_service_fee(item)
            amount = Decimal(item.unit_price) * item.quantity
            if fee:
                service_fee += amount
            else:
                subtotal += amount
            items.append(LineItem(
                id=item.id,
                title=item.title,
                product_id=item.product_id,
                product_title=item.product_title,
                variant_id=item.variant_id,
                variant_title=item.variant_title,
                unit_price=item.unit_price,
                quantity=item.quantity,
                metadata=item.item_metadata,
                is_service_fee=fee,
            ))

        return CartDetail(
            id=cart.id,
            email=cart.email,
            currency_code=cart.currency_code,
            completed_at=cart.completed_at,
            items=items,
            subtotal=subtotal,
            service_fee=service_fee,
            total=subtotal + service_fee,
        )
