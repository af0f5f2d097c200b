"""QR artifact encoding.

Two payload shapes are produced, namespaced by ``type`` and versioned by
``v`` so a scanner can tell them apart. Everything in this module is a pure
transform of already-loaded records.
"""

import base64
import json
from io import BytesIO
from typing import Any, Dict, Union

import qrcode
from PIL import Image
from pydantic import BaseModel
from qrcode import constants

from boxoffice.calendar_day import to_calendar_day
from boxoffice.exceptions import QRCodeEncodingError
from boxoffice.models import GA_SEAT_LABEL, Order, OrderLineItem, Ticket
from boxoffice.tickets.schemas import OrderItemQRPayload, TicketQRPayload

DEFAULT_QR_WIDTH = 256


def ticket_validation_url(base_url: str, ticket_id: str) -> str:
    return f"{base_url.rstrip('/')}/tickets/validate/{ticket_id}"


def build_ticket_payload(ticket: Ticket, base_url: str) -> TicketQRPayload:
    """Ticket must have show, venue, row, variant and order loaded"""
    venue = ticket.show.venue.name
    show_date = to_calendar_day(ticket.show_date)
    is_general_access = ticket.seat_label == GA_SEAT_LABEL
    row_number = None if is_general_access or ticket.row is None else ticket.row.row_number

    if is_general_access:
        text = f"Ticket: {venue} - General Access - {show_date}"
    else:
        text = f"Ticket: {venue} - Row {row_number}, Seat {ticket.seat_label} - {show_date}"

    return TicketQRPayload(
        ticket_id=ticket.id,
        order_id=ticket.order_id,
        seat_label=ticket.seat_label,
        row_number=row_number,
        show_date=show_date,
        venue=venue,
        product_title=ticket.show.title,
        category=ticket.show_variant.category,
        validation_url=ticket_validation_url(base_url, ticket.id),
        text=text,
    )


def build_order_item_payload(order: Order, item: OrderLineItem) -> OrderItemQRPayload:
    return OrderItemQRPayload(
        order_id=order.id,
        item_id=item.id,
        product_id=item.product_id,
        product_title=item.product_title,
        quantity=item.quantity,
        unit_price=item.unit_price,
        total=item.total,
        email=order.email,
    )


def serialize_payload(payload: BaseModel) -> str:
    return json.dumps(payload.model_dump(mode="json"), separators=(",", ":"))


def render_qr_data_url(data: Union[str, BaseModel], width: int = DEFAULT_QR_WIDTH) -> str:
    """Encode ``data`` as a PNG QR code and return it as a data URL"""
    if isinstance(data, BaseModel):
        data = serialize_payload(data)

    try:
        qr = qrcode.QRCode(
            version=1,
            error_correction=constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        qr_image = qr.make_image(fill_color="black", back_color="white")
        qr_image = qr_image.resize((width, width), Image.LANCZOS)

        buffer = BytesIO()
        qr_image.save(buffer, format="PNG")
    except Exception as e:
        raise QRCodeEncodingError(f"Failed to encode QR code: {e}") from e

    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


def payload_dict(payload: BaseModel) -> Dict[str, Any]:
    return payload.model_dump(mode="json")
