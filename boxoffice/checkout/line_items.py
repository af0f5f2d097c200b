from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from boxoffice.calendar_day import to_calendar_day
from boxoffice.cart.service_fee import is_service_fee
from boxoffice.catalog import CatalogService, normalize_variant_options
from boxoffice.exceptions import InvalidArgumentError
from boxoffice.models import GA_SEAT_LABEL, Show, ShowVariant, VenueRow


@dataclass
class TicketLine:
    """A cart or order line item resolved against the show catalog"""
    line_item_id: str
    show: Show
    show_variant: ShowVariant
    category: str
    show_date: date
    quantity: int
    is_general_access: bool
    row: Optional[VenueRow] = None
    seat_label: str = GA_SEAT_LABEL

    @property
    def seat_key(self):
        return (self.show.id, self.row.id if self.row else None, self.seat_label, self.show_date)


class LineItemResolver:
    """Turns line items into TicketLines, enforcing per-item selection rules.

    Items that do not reference a show variant (or are fee items) resolve to
    None and are ignored by the ticketing core.
    """

    def __init__(self, db: Session, catalog: Optional[CatalogService] = None):
        self.db = db
        self.catalog = catalog or CatalogService(db)

    def resolve(self, item) -> Optional[TicketLine]:
        if is_service_fee(item) or not item.variant_id:
            return None

        variant = self.catalog.get_variant_by_ref(item.variant_id)
        if not variant:
            return None

        show = variant.show
        metadata: Dict[str, Any] = item.item_metadata or {}
        variant_day = to_calendar_day(variant.show_date)

        options = normalize_variant_options(item.variant_options)
        if options.show_date and options.show_date != variant_day:
            raise InvalidArgumentError(
                f"Variant options date {options.show_date} does not match ticket variant date {variant_day}"
            )
        if options.category and options.category != variant.category:
            raise InvalidArgumentError(
                f"Variant options row type {options.category} does not match ticket variant {variant.category}"
            )

        if show.is_general_access:
            return self._resolve_general_access(item, show, variant, variant_day, metadata)
        return self._resolve_seat(item, show, variant, variant_day, metadata)

    def _resolve_general_access(self, item, show, variant, variant_day, metadata) -> TicketLine:
        if item.quantity is None or item.quantity < 1:
            raise InvalidArgumentError("General access tickets require a quantity of at least 1.")

        show_date = self._check_date(show, variant_day, metadata.get("show_date") or variant_day)

        return TicketLine(
            line_item_id=item.id,
            show=show,
            show_variant=variant,
            category=variant.category,
            show_date=show_date,
            quantity=item.quantity,
            is_general_access=True,
        )

    def _resolve_seat(self, item, show, variant, variant_day, metadata) -> TicketLine:
        if item.quantity != 1:
            raise InvalidArgumentError("You can only purchase one ticket for a seat.")

        seat_number = metadata.get("seat_number")
        row_id = metadata.get("venue_row_id")
        row_number = metadata.get("row_number")
        row_ref = row_id if row_id not in (None, "") else row_number
        raw_date = metadata.get("show_date")

        missing = [
            name for name, value in (
                ("seat_number", seat_number),
                ("row", row_ref),
                ("show_date", raw_date),
            ) if value in (None, "")
        ]
        if missing:
            raise InvalidArgumentError(
                f"Missing {', '.join(missing)} for ticket in product {show.external_product_ref}"
            )

        show_date = self._check_date(show, variant_day, raw_date)
        row = self._find_row(show, row_id, row_number)

        if row.category != variant.category:
            raise InvalidArgumentError(
                f"Row {row.row_number} is {row.category} but the ticket variant is {variant.category}"
            )

        seat_label = str(seat_number).strip()
        if not seat_label.isdigit() or not 1 <= int(seat_label) <= row.seat_count:
            raise InvalidArgumentError(f"Seat {seat_label} does not exist in row {row.row_number}")

        return TicketLine(
            line_item_id=item.id,
            show=show,
            show_variant=variant,
            category=variant.category,
            show_date=show_date,
            quantity=1,
            is_general_access=False,
            row=row,
            seat_label=str(int(seat_label)),
        )

    def _check_date(self, show: Show, variant_day: date, raw_date) -> date:
        show_date = to_calendar_day(raw_date)
        if show_date != variant_day:
            raise InvalidArgumentError(
                f"Show date {show_date} does not match ticket variant date {variant_day}"
            )
        if not self.catalog.has_date(show, show_date):
            raise InvalidArgumentError(f"Show {show.external_product_ref} does not run on {show_date}")
        return show_date

    def _find_row(self, show: Show, row_id, row_number) -> VenueRow:
        for row in self.catalog.physical_rows(show):
            if row_id not in (None, ""):
                if str(row.id) == str(row_id):
                    return row
            elif row.row_number == str(row_number):
                return row
        raise InvalidArgumentError(f"Row {row_id or row_number} does not exist at {show.venue.name}")
