from collections import Counter
from typing import Optional

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from boxoffice.calendar_day import to_calendar_day
from boxoffice.catalog import CatalogService
from boxoffice.exceptions import ConflictError, InvalidArgumentError
from boxoffice.admin.schemas import (
    CapacityUpdateResult, DateSales, ShowStats, ShowTicket, ShowTicketList
)
from boxoffice.models import GA_SEAT_LABEL, GeneralAccessAllocation, Show, ShowVariant, Ticket


class ShowAdminService:
    """Sales figures and capacity management for a single show"""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    def show_stats(self, show_id: int) -> ShowStats:
        show = self.catalog.get_show(show_id)
        capacity_per_date = self._capacity_per_date(show)

        sold_by_date = Counter()
        for ticket_date, count in self.db.query(Ticket.show_date, func.count(Ticket.id)).filter(
            Ticket.show_id == show.id
        ).group_by(Ticket.show_date):
            sold_by_date[to_calendar_day(ticket_date)] += count

        by_category = Counter()
        for category, count in self.db.query(ShowVariant.category, func.count(Ticket.id)).join(
            Ticket, Ticket.show_variant_id == ShowVariant.id
        ).filter(Ticket.show_id == show.id).group_by(ShowVariant.category):
            by_category[category] += count

        dates = sorted(set(to_calendar_day(d) for d in show.date_values) | set(sold_by_date))
        total_sold = sum(sold_by_date.values())
        total_capacity = capacity_per_date * len(show.date_values)
        percentage = round(total_sold / total_capacity * 100, 2) if total_capacity > 0 else 0.0

        return ShowStats(
            show_id=show.id,
            title=show.title,
            admission_mode=show.admission_mode,
            venue=show.venue.name,
            total_tickets_sold=total_sold,
            capacity_per_date=capacity_per_date,
            total_capacity=total_capacity,
            percentage_sold=percentage,
            sales_by_date=[
                DateSales(date=d, tickets_sold=sold_by_date.get(d, 0), capacity=capacity_per_date)
                for d in dates
            ],
            tickets_by_category=dict(by_category),
        )

    def list_show_tickets(self, show_id: int, limit: int = 50, offset: int = 0) -> ShowTicketList:
        show = self.catalog.get_show(show_id)
        query = self.db.query(Ticket).filter(Ticket.show_id == show.id)
        total = query.count()

        tickets = query.options(
            joinedload(Ticket.row),
            joinedload(Ticket.show_variant),
            joinedload(Ticket.order),
        ).order_by(Ticket.created_at.desc(), Ticket.id).offset(offset).limit(limit).all()

        return ShowTicketList(
            show_id=show.id,
            total=total,
            tickets=[
                ShowTicket(
                    id=t.id,
                    order_id=t.order_id,
                    row_number=None if t.seat_label == GA_SEAT_LABEL or t.row is None else t.row.row_number,
                    seat_label=t.seat_label,
                    category=t.show_variant.category,
                    show_date=t.show_date,
                    status=t.status,
                    created_at=t.created_at,
                    customer_name=t.order.customer_name,
                    customer_email=t.order.email,
                )
                for t in tickets
            ],
        )

    def update_capacity_override(self, show_id: int, capacity_override: Optional[int]) -> CapacityUpdateResult:
        """Set or clear a general access show's capacity per date.

        The new capacity may not drop below what is already sold on any date.
        The override is written before the sold counters are read, and the
        counters are locked, so a sale running at the same time either lands
        before the check or sees the new capacity.
        """
        show = self.catalog.get_show(show_id)
        if not show.is_general_access:
            raise InvalidArgumentError("Capacity can only be set for general access shows")
        if capacity_override is not None and capacity_override < 0:
            raise InvalidArgumentError("Capacity must not be negative")

        previous = show.capacity_override
        capacity = capacity_override if capacity_override is not None else self.catalog.venue_capacity(show)
        try:
            show.capacity_override = capacity_override
            self.db.flush()

            allocated = self.db.query(GeneralAccessAllocation.sold).filter(
                GeneralAccessAllocation.show_id == show.id
            ).with_for_update().all()
            issued = self.db.query(func.count(Ticket.id)).filter(
                Ticket.show_id == show.id
            ).group_by(Ticket.show_date).all()
            max_sold = max([sold for sold, in allocated] + [count for count, in issued], default=0)

            if capacity < max_sold:
                raise ConflictError(
                    f"Capacity {capacity} is below the {max_sold} tickets already sold for one of the show dates"
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Capacity override of show {show.id} changed from {previous} to {capacity_override}")
        return CapacityUpdateResult(
            show_id=show.id,
            capacity_override=capacity_override,
            effective_capacity=capacity,
        )

    def _capacity_per_date(self, show: Show) -> int:
        if show.is_general_access:
            return self.catalog.effective_capacity(show)
        return sum(row.seat_count for row in self.catalog.physical_rows(show))
