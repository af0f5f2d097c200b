from collections import OrderedDict
from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from boxoffice.catalog import CatalogService
from boxoffice.checkout.line_items import LineItemResolver, TicketLine
from boxoffice.exceptions import ConflictError, CustomBaseError
from boxoffice.models import Ticket


class CheckoutGuard:
    """Last gate before a cart becomes an order.

    Performs no writes. Any violation raises and the whole completion attempt
    is abandoned. The storage constraints remain the authority under
    concurrency; this check rejects the common cases early with a clear
    message.
    """

    def __init__(self, db: Session, catalog: Optional[CatalogService] = None):
        self.db = db
        self.catalog = catalog or CatalogService(db)
        self.resolver = LineItemResolver(db, self.catalog)

    def check(self, items: Iterable) -> List[TicketLine]:
        try:
            return self._check(list(items))
        except CustomBaseError as e:
            logger.warning(f"Checkout rejected: {e.message}")
            raise

    def _check(self, items) -> List[TicketLine]:
        lines: List[TicketLine] = []
        claimed_seats = set()
        general_access = OrderedDict()

        for item in items:
            line = self.resolver.resolve(item)
            if line is None:
                continue

            if line.is_general_access:
                key = (line.show.id, line.show_date)
                show, requested = general_access.get(key, (line.show, 0))
                general_access[key] = (show, requested + line.quantity)
            else:
                if line.seat_key in claimed_seats:
                    raise ConflictError(
                        f"Duplicate seat {line.seat_label} in row {line.row.row_number} "
                        f"found for show date {line.show_date} in cart"
                    )
                claimed_seats.add(line.seat_key)

                if self._seat_sold(line):
                    raise ConflictError(
                        f"Seat {line.seat_label} in row {line.row.row_number} has already been "
                        f"purchased for show date {line.show_date}"
                    )

            lines.append(line)

        for (show_id, show_date), (show, requested) in general_access.items():
            capacity = self.catalog.effective_capacity(show)
            sold = self.count_tickets(show_id, show_date)
            if sold + requested > capacity:
                remaining = max(0, capacity - sold)
                raise ConflictError(
                    f"Only {remaining} general access tickets remain for {show.title} on {show_date}"
                )

        return lines

    def _seat_sold(self, line: TicketLine) -> bool:
        return self.db.query(Ticket.id).filter(
            Ticket.show_variant_id == line.show_variant.id,
            Ticket.row_id == line.row.id,
            Ticket.seat_label == line.seat_label,
            Ticket.show_date == line.show_date,
        ).first() is not None

    def count_tickets(self, show_id: int, show_date) -> int:
        return self.db.query(func.count(Ticket.id)).filter(
            Ticket.show_id == show_id,
            Ticket.show_date == show_date,
        ).scalar() or 0
