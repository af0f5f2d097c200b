#!/usr/bin/env python3

from datetime import date

from sqlalchemy.orm import Session

from boxoffice.database import SessionLocal, init_db
from boxoffice.models import (
    AdmissionMode, Cart, CartLineItem, GeneralAccessAllocation, Order, OrderLineItem,
    RowCategory, Show, ShowDate, ShowVariant, Ticket, Venue, VenueRow
)

JAZZ_NIGHT_DATES = [date(2025, 7, 1), date(2025, 7, 2)]
OPEN_MIC_DATES = [date(2025, 7, 5)]


def clear_data(db: Session):
    # reverse dependency order
    for model in (
        Ticket, GeneralAccessAllocation, OrderLineItem, Order, CartLineItem, Cart,
        ShowVariant, ShowDate, Show, VenueRow, Venue,
    ):
        db.query(model).delete()


def create_seed_data(db: Session):
    """Demo catalog: one seated show and one general access show"""
    # 1. Venues
    print("Creating venues...")
    main_hall = Venue(name="Main Hall", address="1 Concert Square")
    corner_stage = Venue(name="Corner Stage", address="12 Harbour Street")
    db.add_all([main_hall, corner_stage])
    db.flush()

    # 2. Rows
    print("Creating venue rows...")
    rows = [
        VenueRow(venue_id=main_hall.id, row_number="A", category=RowCategory.VIP.value, seat_count=8),
        VenueRow(venue_id=main_hall.id, row_number="B", category=RowCategory.PREMIUM.value, seat_count=12),
        VenueRow(venue_id=main_hall.id, row_number="C", category=RowCategory.STANDARD.value, seat_count=16),
        VenueRow(venue_id=main_hall.id, row_number="D", category=RowCategory.STANDARD.value, seat_count=16),
        VenueRow(venue_id=main_hall.id, row_number="E", category=RowCategory.BALCONY.value, seat_count=10),
        VenueRow(venue_id=corner_stage.id, row_number="GA",
                 category=RowCategory.GENERAL_ACCESS.value, seat_count=50),
    ]
    db.add_all(rows)
    db.flush()

    # 3. Shows
    print("Creating shows...")
    jazz_night = Show(
        external_product_ref="prod_jazz_night",
        title="Jazz Night",
        venue_id=main_hall.id,
        admission_mode=AdmissionMode.SEAT_BASED.value,
        dates=[ShowDate(show_date=d) for d in JAZZ_NIGHT_DATES],
    )
    open_mic = Show(
        external_product_ref="prod_open_mic",
        title="Open Mic",
        venue_id=corner_stage.id,
        admission_mode=AdmissionMode.GENERAL_ACCESS.value,
        capacity_override=50,
        dates=[ShowDate(show_date=d) for d in OPEN_MIC_DATES],
    )
    db.add_all([jazz_night, open_mic])
    db.flush()

    # 4. Variants, one per date and category on sale
    print("Creating show variants...")
    variants = []
    seated_categories = sorted({row.category for row in rows if row.venue_id == main_hall.id})
    for show_date in JAZZ_NIGHT_DATES:
        for category in seated_categories:
            variants.append(ShowVariant(
                show_id=jazz_night.id,
                external_variant_ref=f"variant_jazz_night_{show_date.isoformat()}_{category}",
                show_date=show_date,
                category=category,
            ))
    for show_date in OPEN_MIC_DATES:
        variants.append(ShowVariant(
            show_id=open_mic.id,
            external_variant_ref=f"variant_open_mic_{show_date.isoformat()}_general_access",
            show_date=show_date,
            category=RowCategory.GENERAL_ACCESS.value,
        ))
    db.add_all(variants)
    db.commit()

    return {
        "venues": 2,
        "rows": len(rows),
        "shows": 2,
        "variants": len(variants),
    }


def main():
    init_db()
    db = SessionLocal()

    try:
        print("🚀 Creating seed data for the box office...")
        print("Clearing existing data...")
        clear_data(db)
        created = create_seed_data(db)

        print("✅ Successfully created seed data!")
        print("Created:")
        for name, count in created.items():
            print(f"  - {count} {name}")
    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
