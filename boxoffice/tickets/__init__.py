"""
Tickets Module

QR artifacts for issued tickets and order items, and the two validation
entry points that check them against stored records:

- qr_codec.py: payload building and PNG data URL rendering
- qr_service.py: QR code listings per order
- validation_service.py: door-scan and proof-of-purchase validation
"""

from .router import router
from .qr_codec import build_order_item_payload, build_ticket_payload, render_qr_data_url
from .qr_service import TicketQRService
from .validation_service import TicketValidationService

__all__ = [
    "router",
    "build_order_item_payload",
    "build_ticket_payload",
    "render_qr_data_url",
    "TicketQRService",
    "TicketValidationService",
]
