import json
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Union

from loguru import logger
from pydantic import ValidationError
from sqlalchemy.orm import Session, joinedload

from boxoffice.exceptions import InvalidDataError, NotFoundError
from boxoffice.models import GA_SEAT_LABEL, Order, Show, Ticket, TicketStatus
from boxoffice.tickets.schemas import (
    OrderItemDetails, OrderItemQRPayload, PayloadValidationResponse, TicketDetails,
    TicketValidationResponse
)

MISMATCH_MESSAGE = "QR code data does not match order item information"


class TicketValidationService:
    """Door-scan and proof-of-purchase validation.

    Both entry points re-read the authoritative records; nothing submitted by
    the client is trusted beyond the ids used to look records up.
    """

    def __init__(self, db: Session):
        self.db = db

    def validate_ticket(self, ticket_id: str) -> TicketValidationResponse:
        ticket = self.db.query(Ticket).options(
            joinedload(Ticket.show).joinedload(Show.venue),
            joinedload(Ticket.row),
            joinedload(Ticket.show_variant),
            joinedload(Ticket.order),
        ).filter(Ticket.id == ticket_id).first()

        if not ticket:
            raise NotFoundError("Ticket not found")

        venue = ticket.show.venue
        order = ticket.order
        is_general_access = ticket.seat_label == GA_SEAT_LABEL
        row_number = None if is_general_access or ticket.row is None else ticket.row.row_number

        details = TicketDetails(
            id=ticket.id,
            seat=ticket.seat_label,
            row=row_number,
            category=ticket.show_variant.category,
            show_date=ticket.show_date,
            status=ticket.status,
            venue=venue.name,
            venue_address=venue.address,
            product_title=ticket.show.title,
            customer_name=order.customer_name,
            customer_email=order.email,
            order_id=order.id,
        )

        valid = ticket.status == TicketStatus.PENDING.value
        if is_general_access:
            summary = f"{venue.name} - General Access"
        else:
            summary = f"{venue.name} - Row {row_number}, Seat {ticket.seat_label}"
        message = f"Valid ticket for {summary}" if valid else f"Ticket for {summary} has already been scanned"

        return TicketValidationResponse(
            valid=valid,
            ticket=details,
            message=message,
            scanned_at=datetime.now(timezone.utc),
        )

    def validate_payload(self, qr_data: Union[str, Dict[str, Any]]) -> PayloadValidationResponse:
        payload = self._parse(qr_data)

        order = self.db.query(Order).options(joinedload(Order.items)).filter(
            Order.id == payload.order_id
        ).first()
        if not order:
            raise NotFoundError("Order not found or invalid")

        item = next((i for i in order.items if i.id == payload.item_id), None)
        if not item:
            raise NotFoundError("Order item not found or invalid")

        mismatched = [
            name for name, submitted, expected in (
                ("product_id", payload.product_id, item.product_id),
                ("product_title", payload.product_title, item.product_title),
                ("quantity", payload.quantity, item.quantity),
                ("unit_price", payload.unit_price, item.unit_price),
            ) if not _same(submitted, expected)
        ]
        scanned_at = datetime.now(timezone.utc)
        if mismatched:
            logger.warning(f"QR payload for item {item.id} mismatched on {', '.join(mismatched)}")
            return PayloadValidationResponse(
                valid=False,
                message=MISMATCH_MESSAGE,
                error=InvalidDataError.__name__,
                scanned_at=scanned_at,
            )

        return PayloadValidationResponse(
            valid=True,
            item_info=OrderItemDetails(
                item_id=item.id,
                order_id=order.id,
                customer_email=order.email,
                product_title=item.product_title,
                variant_title=item.variant_title,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=item.total,
                order_date=order.created_at,
            ),
            message="Order item is valid",
            scanned_at=scanned_at,
        )

    @staticmethod
    def _parse(qr_data: Union[str, Dict[str, Any]]) -> OrderItemQRPayload:
        if isinstance(qr_data, str):
            try:
                qr_data = json.loads(qr_data)
            except ValueError:
                raise InvalidDataError("Invalid QR code data format")

        if not isinstance(qr_data, dict):
            raise InvalidDataError("Invalid QR code data format")

        try:
            return OrderItemQRPayload.model_validate(qr_data)
        except ValidationError:
            raise InvalidDataError("QR code data is not an order item code")


def _same(submitted, expected) -> bool:
    if isinstance(expected, Decimal) or isinstance(submitted, Decimal):
        try:
            return Decimal(str(submitted)) == Decimal(str(expected))
        except InvalidOperation:
            return False
    return submitted == expected
