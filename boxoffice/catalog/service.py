from datetime import date
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from boxoffice.calendar_day import to_calendar_day
from boxoffice.exceptions import NotFoundError, UnexpectedStateError
from boxoffice.models import GA_ROW_NUMBER, RowCategory, Show, ShowVariant, Venue, VenueRow


class CatalogService:
    """Read access to the venue and show catalogs"""

    def __init__(self, db: Session):
        self.db = db

    def get_show(self, show_id: int) -> Show:
        show = self.db.query(Show).options(
            joinedload(Show.venue).joinedload(Venue.rows),
            joinedload(Show.dates),
            joinedload(Show.variants),
        ).filter(Show.id == show_id).first()

        if not show:
            raise NotFoundError("Show not found")
        return show

    def get_variant_by_ref(self, external_variant_ref: str) -> Optional[ShowVariant]:
        return self.db.query(ShowVariant).options(
            joinedload(ShowVariant.show).joinedload(Show.venue).joinedload(Venue.rows),
            joinedload(ShowVariant.show).joinedload(Show.dates),
        ).filter(ShowVariant.external_variant_ref == external_variant_ref).first()

    @staticmethod
    def find_variant(show: Show, show_date: date, category: str) -> Optional[ShowVariant]:
        day = to_calendar_day(show_date)
        for variant in show.variants:
            if variant.category == category and to_calendar_day(variant.show_date) == day:
                return variant
        return None

    @staticmethod
    def has_date(show: Show, show_date: date) -> bool:
        day = to_calendar_day(show_date)
        return any(to_calendar_day(d) == day for d in show.date_values)

    @staticmethod
    def physical_rows(show: Show) -> List[VenueRow]:
        return [r for r in show.venue.rows if r.category != RowCategory.GENERAL_ACCESS.value]

    @staticmethod
    def effective_capacity(show: Show) -> int:
        """Capacity of one general access date.

        The manual override wins, otherwise the venue capacity applies.
        """
        if show.capacity_override is not None:
            return show.capacity_override
        return CatalogService.venue_capacity(show)

    @staticmethod
    def venue_capacity(show: Show) -> int:
        """A venue's configured general_access rows are its capacity buckets;
        a venue without one falls back to its seat count. Placeholder rows
        created at sale time are shared by every show at the venue and are
        never counted.
        """
        rows = [r for r in show.venue.rows if not r.is_placeholder]
        buckets = [r for r in rows if r.category == RowCategory.GENERAL_ACCESS.value]
        return sum(r.seat_count for r in (buckets or rows))

    def find_or_create_general_access_row(self, show: Show) -> VenueRow:
        """Return the venue's general_access row, creating a placeholder once.

        Runs in its own transaction; a concurrent creator trips the
        (venue_id, row_number) unique constraint and we read its row instead.
        """
        existing = self._general_access_row(show.venue_id)
        if existing:
            return existing

        row = VenueRow(
            venue_id=show.venue_id,
            row_number=GA_ROW_NUMBER,
            category=RowCategory.GENERAL_ACCESS.value,
            seat_count=1,
            is_placeholder=True,
        )
        self.db.add(row)
        try:
            self.db.commit()
            logger.info(f"Created general access row {row.id} for venue {show.venue_id}")
            return row
        except IntegrityError:
            self.db.rollback()

        existing = self._general_access_row(show.venue_id)
        if not existing:
            raise UnexpectedStateError(
                f"Venue {show.venue_id} has a row numbered {GA_ROW_NUMBER} that is not general access"
            )
        return existing

    def _general_access_row(self, venue_id: int) -> Optional[VenueRow]:
        return self.db.query(VenueRow).filter(
            VenueRow.venue_id == venue_id,
            VenueRow.category == RowCategory.GENERAL_ACCESS.value,
        ).order_by(VenueRow.id).first()
