from datetime import date

import pytest

from boxoffice.checkout import CheckoutGuard, TicketIssuanceService
from boxoffice.exceptions import ConflictError, InvalidArgumentError
from boxoffice.models import RowCategory, Ticket

JAZZ_DATE = date(2025, 7, 1)
OPEN_MIC_DATE = date(2025, 7, 5)


class TestSeatItems:
    def test_accepts_distinct_available_seats(self, db, builder, jazz_night):
        order = builder.order([
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1),
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 2),
        ])
        lines = CheckoutGuard(db).check(order.items)

        assert [line.seat_label for line in lines] == ["1", "2"]
        assert db.query(Ticket).count() == 0

    def test_quantity_must_be_one(self, db, builder, jazz_night):
        order = builder.order([builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1, quantity=2)])
        with pytest.raises(InvalidArgumentError, match="only purchase one ticket"):
            CheckoutGuard(db).check(order.items)

    @pytest.mark.parametrize("missing, field", [
        ("seat_number", "seat_number"),
        ("row_number", "row"),
        ("show_date", "show_date"),
    ])
    def test_missing_selection_fields_are_named(self, db, builder, jazz_night, missing, field):
        item = builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1)
        metadata = dict(item.metadata)
        del metadata[missing]
        order = builder.order([item.model_copy(update={"metadata": metadata})])

        with pytest.raises(InvalidArgumentError, match=f"Missing {field}"):
            CheckoutGuard(db).check(order.items)

    def test_row_can_be_selected_by_id(self, db, builder, jazz_night):
        row_id = jazz_night.venue.rows[0].id
        item = builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 2)
        metadata = {"seat_number": "2", "venue_row_id": row_id, "show_date": "2025-07-01"}
        order = builder.order([item.model_copy(update={"metadata": metadata})])

        [line] = CheckoutGuard(db).check(order.items)
        assert line.row.id == row_id

    def test_duplicate_seat_in_cart_is_rejected(self, db, builder, jazz_night):
        order = builder.order([
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1),
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 2),
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", "01"),
        ])
        with pytest.raises(ConflictError, match="Duplicate seat 1 in row A"):
            CheckoutGuard(db).check(order.items)

    def test_seat_sold_earlier_is_rejected(self, db, builder, jazz_night):
        sold = builder.order([builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 2)])
        TicketIssuanceService(db).issue_tickets(sold.id, sold.items)

        order = builder.order([builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 2)])
        with pytest.raises(ConflictError, match="already been purchased"):
            CheckoutGuard(db).check(order.items)

    def test_seat_outside_the_row_is_rejected(self, db, builder, jazz_night):
        order = builder.order([builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 3)])
        with pytest.raises(InvalidArgumentError, match="does not exist"):
            CheckoutGuard(db).check(order.items)

    @pytest.mark.parametrize("seat", ["GA", "ga", "1a", "-1"])
    def test_non_numeric_seat_labels_never_reach_issuance(self, db, builder, jazz_night, seat):
        order = builder.order([builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", seat)])
        with pytest.raises(InvalidArgumentError, match="does not exist"):
            CheckoutGuard(db).check(order.items)
        with pytest.raises(InvalidArgumentError, match="does not exist"):
            TicketIssuanceService(db).issue_tickets(order.id, order.items)
        assert db.query(Ticket).count() == 0

    def test_row_category_must_match_the_variant(self, db, builder):
        venue = builder.venue("Main Hall", [
            ("A", RowCategory.VIP.value, 2),
            ("B", RowCategory.STANDARD.value, 2),
        ])
        builder.show(venue, "Quartet", [JAZZ_DATE])
        order = builder.order([builder.seat_item("Quartet", "standard", JAZZ_DATE, "A", 1)])
        with pytest.raises(InvalidArgumentError, match="vip"):
            CheckoutGuard(db).check(order.items)

    def test_show_date_must_match_the_variant(self, db, builder, jazz_night):
        item = builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1)
        metadata = dict(item.metadata, show_date="2025-07-02")
        order = builder.order([item.model_copy(update={"metadata": metadata})])
        with pytest.raises(InvalidArgumentError, match="does not match"):
            CheckoutGuard(db).check(order.items)

    def test_variant_options_must_agree_with_the_variant(self, db, builder, jazz_night):
        item = builder.seat_item(
            "Jazz Night", "standard", JAZZ_DATE, "A", 1,
            variant_options={"Date": "2025-07-01", "Row Type": "vip"},
        )
        order = builder.order([item])
        with pytest.raises(InvalidArgumentError, match="row type"):
            CheckoutGuard(db).check(order.items)

    def test_items_without_a_show_variant_are_ignored(self, db, builder, jazz_night):
        item = builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1)
        merch = item.model_copy(update={"variant_id": "tshirt_large", "metadata": None})
        order = builder.order([merch])
        assert CheckoutGuard(db).check(order.items) == []


class TestGeneralAccessItems:
    def test_within_capacity(self, db, builder, open_mic):
        order = builder.order([builder.ga_item("Open Mic", OPEN_MIC_DATE, quantity=50)])
        [line] = CheckoutGuard(db).check(order.items)
        assert line.is_general_access
        assert line.quantity == 50

    def test_quantities_are_aggregated_across_items(self, db, builder, open_mic):
        order = builder.order([
            builder.ga_item("Open Mic", OPEN_MIC_DATE, quantity=30),
            builder.ga_item("Open Mic", OPEN_MIC_DATE, quantity=21),
        ])
        with pytest.raises(ConflictError, match="Only 50 general access tickets remain"):
            CheckoutGuard(db).check(order.items)

    def test_existing_tickets_count_against_capacity(self, db, builder, open_mic):
        sold = builder.order([builder.ga_item("Open Mic", OPEN_MIC_DATE, quantity=48)])
        TicketIssuanceService(db).issue_tickets(sold.id, sold.items)

        order = builder.order([builder.ga_item("Open Mic", OPEN_MIC_DATE, quantity=3)])
        with pytest.raises(ConflictError, match="Only 2 general access tickets remain"):
            CheckoutGuard(db).check(order.items)
