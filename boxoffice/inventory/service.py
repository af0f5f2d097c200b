from collections import Counter, OrderedDict
from datetime import date
from typing import Dict, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from boxoffice.calendar_day import DateLike, to_calendar_day
from boxoffice.catalog import CatalogService
from boxoffice.exceptions import InvalidArgumentError
from boxoffice.inventory.schemas import (
    CategoryAvailability, DateAvailability, SeatMap, SeatMapRow, SeatStatus,
    ShowAvailability, VenueInfo
)
from boxoffice.models import RowCategory, Show, Ticket


class InventoryService:
    """Read path: remaining inventory per date and the seat-by-seat grid.

    Nothing here writes; every figure is derived from the catalog and the
    committed tickets at the time of the call.
    """

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    def get_availability(self, show_id: int) -> ShowAvailability:
        show = self.catalog.get_show(show_id)
        groups = self._capacity_groups(show)
        sold = self._tickets_by_variant(show.id)

        dates = []
        for show_date in show.date_values:
            day = to_calendar_day(show_date)
            categories = []
            for category, total_capacity in groups.items():
                variant = self.catalog.find_variant(show, day, category)
                if variant is None:
                    # not on sale for this date
                    available = 0
                else:
                    available = max(0, total_capacity - sold.get((variant.id, day), 0))
                categories.append(CategoryAvailability(
                    category=category,
                    total_capacity=total_capacity,
                    available=available,
                    sold_out=available == 0,
                    show_variant_id=variant.id if variant else None,
                ))

            dates.append(DateAvailability(
                date=day,
                categories=categories,
                sold_out=all(c.available == 0 for c in categories),
            ))

        return ShowAvailability(
            show_id=show.id,
            title=show.title,
            admission_mode=show.admission_mode,
            dates=dates,
        )

    def get_seat_map(self, show_id: int, target_date: DateLike) -> SeatMap:
        show = self.catalog.get_show(show_id)
        day = to_calendar_day(target_date)
        if not self.catalog.has_date(show, day):
            raise InvalidArgumentError(f"Show {show.title} does not run on {day}")

        purchased = {
            (row_id, seat_label)
            for row_id, seat_label, ticket_date in self.db.query(
                Ticket.row_id, Ticket.seat_label, Ticket.show_date
            ).filter(Ticket.show_id == show.id, Ticket.show_date == day)
            if to_calendar_day(ticket_date) == day
        }

        rows = []
        for row in self.catalog.physical_rows(show):
            variant = self.catalog.find_variant(show, day, row.category)
            variant_id = variant.id if variant else None
            seats = [
                SeatStatus(
                    seat_label=str(number),
                    is_purchased=(row.id, str(number)) in purchased,
                    show_variant_id=variant_id,
                )
                for number in range(1, row.seat_count + 1)
            ]
            rows.append(SeatMapRow(
                row_id=row.id,
                row_number=row.row_number,
                category=row.category,
                seats=seats,
            ))

        return SeatMap(
            show_id=show.id,
            date=day,
            venue=VenueInfo(id=show.venue.id, name=show.venue.name, address=show.venue.address),
            rows=rows,
        )

    def _capacity_groups(self, show: Show) -> Dict[str, int]:
        """Category -> total capacity, in venue row order"""
        if show.is_general_access:
            return {RowCategory.GENERAL_ACCESS.value: self.catalog.effective_capacity(show)}

        groups: Dict[str, int] = OrderedDict()
        for row in self.catalog.physical_rows(show):
            groups[row.category] = groups.get(row.category, 0) + row.seat_count
        return groups

    def _tickets_by_variant(self, show_id: int) -> Dict[Tuple[int, date], int]:
        counts: Dict[Tuple[int, date], int] = Counter()
        results = self.db.query(
            Ticket.show_variant_id, Ticket.show_date, func.count(Ticket.id)
        ).filter(Ticket.show_id == show_id).group_by(Ticket.show_variant_id, Ticket.show_date).all()

        for variant_id, ticket_date, count in results:
            counts[(variant_id, to_calendar_day(ticket_date))] += count
        return counts
