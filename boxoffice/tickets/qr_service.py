from typing import Callable, List

from loguru import logger
from pydantic import BaseModel
from sqlalchemy.orm import Session, joinedload

from boxoffice.cart.service_fee import is_service_fee
from boxoffice.config import EngineConfig
from boxoffice.exceptions import NotFoundError, QRCodeEncodingError
from boxoffice.models import Order, Show, Ticket
from boxoffice.tickets.qr_codec import (
    DEFAULT_QR_WIDTH, build_order_item_payload, build_ticket_payload, payload_dict,
    render_qr_data_url
)
from boxoffice.tickets.schemas import OrderQRCodes, QRCodeEntry


class TicketQRService:
    """QR codes for everything an order holds"""

    def __init__(
        self,
        db: Session,
        config: EngineConfig,
        width: int = DEFAULT_QR_WIDTH,
        renderer: Callable[[BaseModel, int], str] = render_qr_data_url,
    ):
        self.db = db
        self.config = config
        self.width = width
        self.renderer = renderer

    def order_ticket_qr_codes(self, order_id: str) -> OrderQRCodes:
        order = self._get_order(order_id)
        tickets = self.db.query(Ticket).options(
            joinedload(Ticket.show).joinedload(Show.venue),
            joinedload(Ticket.row),
            joinedload(Ticket.show_variant),
        ).filter(Ticket.order_id == order.id).order_by(Ticket.show_date, Ticket.created_at, Ticket.id).all()

        entries = [
            self._entry(ticket.id, build_ticket_payload(ticket, self.config.validation_base_url))
            for ticket in tickets
        ]
        return OrderQRCodes(
            order_id=order.id,
            customer_email=order.email,
            qr_codes=entries,
            total_items=len(entries),
        )

    def order_item_qr_codes(self, order_id: str) -> OrderQRCodes:
        order = self._get_order(order_id)
        entries = [
            self._entry(item.id, build_order_item_payload(order, item))
            for item in order.items
            if not is_service_fee(item)
        ]
        return OrderQRCodes(
            order_id=order.id,
            customer_email=order.email,
            qr_codes=entries,
            total_items=len(entries),
        )

    def _entry(self, item_id: str, payload: BaseModel) -> QRCodeEntry:
        try:
            image = self.renderer(payload, self.width)
        except QRCodeEncodingError as e:
            # the entry is still listed so the caller can show a placeholder
            logger.error(f"QR code for {item_id} could not be rendered: {e.message}")
            return QRCodeEntry(item_id=item_id, qr_code=None, qr_data=payload_dict(payload), error=e.message)
        return QRCodeEntry(item_id=item_id, qr_code=image, qr_data=payload_dict(payload))

    def _get_order(self, order_id: str) -> Order:
        order = self.db.query(Order).options(joinedload(Order.items)).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order not found")
        return order
