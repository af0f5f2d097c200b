from collections import Counter, OrderedDict
from datetime import date
from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boxoffice.catalog import CatalogService
from boxoffice.checkout.line_items import LineItemResolver, TicketLine
from boxoffice.exceptions import ConflictError
from boxoffice.models import (
    GA_SEAT_LABEL, GeneralAccessAllocation, Show, Ticket, TicketStatus
)


class TicketIssuanceService:
    """Creates Ticket records for a durable order and removes them on rollback"""

    def __init__(self, db: Session, catalog: Optional[CatalogService] = None):
        self.db = db
        self.catalog = catalog or CatalogService(db)
        self.resolver = LineItemResolver(db, self.catalog)

    def issue_tickets(self, order_id: str, line_items: Iterable) -> List[str]:
        """Insert one ticket per seat line and one per general access unit.

        Either every ticket is committed or none is. Returns the created
        ticket ids, which double as the undo token for ``delete_tickets``.
        """
        lines = [line for line in (self.resolver.resolve(item) for item in line_items) if line]
        if not lines:
            logger.info(f"Order {order_id} has no ticket line items")
            return []

        general_access = self._general_access_demand(lines)
        ga_rows = {}
        for show, _ in general_access.values():
            if show.id not in ga_rows:
                ga_rows[show.id] = self.catalog.find_or_create_general_access_row(show).id
        for show_id, show_date in general_access:
            self._ensure_allocation(show_id, show_date)

        tickets = []
        try:
            for (show_id, show_date), (show, quantity) in general_access.items():
                self._allocate(show, show_date, quantity)

            for line in lines:
                if line.is_general_access:
                    tickets.extend(
                        self._build_ticket(order_id, line, ga_rows[line.show.id])
                        for _ in range(line.quantity)
                    )
                else:
                    tickets.append(self._build_ticket(order_id, line, line.row.id))

            self.db.add_all(tickets)
            self.db.flush()
            ticket_ids = [t.id for t in tickets]
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Ticket insert for order {order_id} hit a uniqueness violation: {e.orig}")
            raise ConflictError("One or more selected seats have already been purchased")
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Issued {len(ticket_ids)} tickets for order {order_id}")
        return ticket_ids

    def delete_tickets(self, ticket_ids: List[str]) -> int:
        """Compensation: remove the given tickets and release general access units"""
        if not ticket_ids:
            return 0

        try:
            tickets = self.db.query(Ticket).filter(Ticket.id.in_(ticket_ids)).all()
            released = Counter(
                (t.show_id, t.show_date) for t in tickets if t.seat_label == GA_SEAT_LABEL
            )
            for (show_id, show_date), count in released.items():
                self.db.execute(
                    update(GeneralAccessAllocation)
                    .where(
                        GeneralAccessAllocation.show_id == show_id,
                        GeneralAccessAllocation.show_date == show_date,
                    )
                    .values(sold=GeneralAccessAllocation.sold - count)
                    .execution_options(synchronize_session=False)
                )
            for ticket in tickets:
                self.db.delete(ticket)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted {len(tickets)} tickets during compensation")
        return len(tickets)

    @staticmethod
    def _general_access_demand(lines: List[TicketLine]):
        demand = OrderedDict()
        for line in lines:
            if not line.is_general_access:
                continue
            key = (line.show.id, line.show_date)
            show, quantity = demand.get(key, (line.show, 0))
            demand[key] = (show, quantity + line.quantity)
        return demand

    def _ensure_allocation(self, show_id: int, show_date: date) -> None:
        """Create the (show, date) counter once, seeded from existing tickets"""
        exists = self.db.query(GeneralAccessAllocation.id).filter(
            GeneralAccessAllocation.show_id == show_id,
            GeneralAccessAllocation.show_date == show_date,
        ).first()
        if exists:
            return

        sold = self.db.query(func.count(Ticket.id)).filter(
            Ticket.show_id == show_id,
            Ticket.show_date == show_date,
        ).scalar() or 0
        self.db.add(GeneralAccessAllocation(show_id=show_id, show_date=show_date, sold=sold))
        try:
            self.db.commit()
        except IntegrityError:
            # another request created it first
            self.db.rollback()

    def _allocate(self, show: Show, show_date: date, quantity: int) -> None:
        """Take ``quantity`` units under the override as currently stored.

        The show row is share-locked so an override change cannot commit
        between reading the capacity and taking the units.
        """
        self.db.query(Show.id).filter(Show.id == show.id).with_for_update(read=True).one()
        capacity = func.coalesce(
            select(Show.capacity_override).where(Show.id == show.id).scalar_subquery(),
            self.catalog.venue_capacity(show),
        )
        result = self.db.execute(
            update(GeneralAccessAllocation)
            .where(
                GeneralAccessAllocation.show_id == show.id,
                GeneralAccessAllocation.show_date == show_date,
                GeneralAccessAllocation.sold + quantity <= capacity,
            )
            .values(sold=GeneralAccessAllocation.sold + quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = self.db.query(capacity).scalar()
            raise ConflictError(
                f"General access capacity of {current} exceeded for {show.title} on {show_date}"
            )

    @staticmethod
    def _build_ticket(order_id: str, line: TicketLine, row_id: int) -> Ticket:
        return Ticket(
            order_id=order_id,
            show_id=line.show.id,
            show_variant_id=line.show_variant.id,
            row_id=row_id,
            seat_label=line.seat_label,
            show_date=line.show_date,
            status=TicketStatus.PENDING.value,
        )
