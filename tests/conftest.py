"""
Shared fixtures.

Every test gets its own file-backed SQLite database so that threads in the
concurrency tests see each other's commits through separate connections.
"""

import os
import tempfile
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

os.environ.setdefault(
    "DATABASE_URL", f"sqlite:///{os.path.join(tempfile.gettempdir(), 'boxoffice_test_app.db')}"
)
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from boxoffice.cart.schemas import CartCreate, LineItemCreate
from boxoffice.cart.service import CartService
from boxoffice.config import EngineConfig
from boxoffice.database import build_engine, get_db, init_db
from boxoffice.dependencies import get_engine_config
from boxoffice.main import app
from boxoffice.models import (
    AdmissionMode, Order, OrderLineItem, RowCategory, Show, ShowDate, ShowVariant, Venue, VenueRow
)

JAZZ_DATE = date(2025, 7, 1)
OPEN_MIC_DATE = date(2025, 7, 5)


class CatalogBuilder:
    """Creates venues, shows, variants and line items for tests"""

    def __init__(self, db: Session):
        self.db = db

    def venue(self, name: str, rows: Sequence[Tuple[str, str, int]]) -> Venue:
        venue = Venue(name=name, address=f"{name} address")
        self.db.add(venue)
        self.db.flush()
        for row_number, category, seat_count in rows:
            self.db.add(VenueRow(venue_id=venue.id, row_number=row_number, category=category, seat_count=seat_count))
        self.db.commit()
        return venue

    def show(
        self,
        venue: Venue,
        title: str,
        dates: Iterable[date],
        admission_mode: str = AdmissionMode.SEAT_BASED.value,
        capacity_override: Optional[int] = None,
        categories: Optional[List[str]] = None,
    ) -> Show:
        dates = list(dates)
        show = Show(
            external_product_ref=self.product_ref(title),
            title=title,
            venue_id=venue.id,
            admission_mode=admission_mode,
            capacity_override=capacity_override,
            dates=[ShowDate(show_date=d) for d in dates],
        )
        self.db.add(show)
        self.db.flush()

        if categories is None:
            if admission_mode == AdmissionMode.GENERAL_ACCESS.value:
                categories = [RowCategory.GENERAL_ACCESS.value]
            else:
                rows = self.db.query(VenueRow).filter(VenueRow.venue_id == venue.id).all()
                categories = sorted({r.category for r in rows if r.category != RowCategory.GENERAL_ACCESS.value})

        for show_date in dates:
            for category in categories:
                self.db.add(ShowVariant(
                    show_id=show.id,
                    external_variant_ref=self.variant_ref(title, show_date, category),
                    show_date=show_date,
                    category=category,
                ))
        self.db.commit()
        return show

    @staticmethod
    def product_ref(title: str) -> str:
        return "prod_" + title.lower().replace(" ", "_")

    @classmethod
    def variant_ref(cls, title: str, show_date: date, category: str) -> str:
        return f"{cls.product_ref(title)}_{show_date.isoformat()}_{category}"

    def seat_item(
        self,
        title: str,
        category: str,
        show_date: date,
        row_number: str,
        seat,
        price: str = "50.00",
        **overrides,
    ) -> LineItemCreate:
        data = dict(
            title=f"{title} - {category}",
            product_id=self.product_ref(title),
            product_title=title,
            variant_id=self.variant_ref(title, show_date, category),
            variant_title=f"{show_date.isoformat()} / {category}",
            variant_options=[
                {"option": {"title": "Date"}, "value": f"{show_date.isoformat()}T00:00:00.000Z"},
                {"option": {"title": "Row Type"}, "value": category},
            ],
            unit_price=Decimal(price),
            quantity=1,
            metadata={"seat_number": str(seat), "row_number": row_number, "show_date": show_date.isoformat()},
        )
        data.update(overrides)
        return LineItemCreate(**data)

    def ga_item(self, title: str, show_date: date, quantity: int = 1, price: str = "20.00") -> LineItemCreate:
        category = RowCategory.GENERAL_ACCESS.value
        return LineItemCreate(
            title=f"{title} - General Access",
            product_id=self.product_ref(title),
            product_title=title,
            variant_id=self.variant_ref(title, show_date, category),
            variant_title=f"{show_date.isoformat()} / General Access",
            variant_options={"Date": show_date.isoformat(), "Row Type": category},
            unit_price=Decimal(price),
            quantity=quantity,
            metadata={"show_date": show_date.isoformat(), "ticket_type": category},
        )

    def order(self, items: Iterable[LineItemCreate], email: str = "guest@example.com") -> Order:
        order = Order(email=email, customer_first_name="Ada", customer_last_name="Lovelace")
        order.items = [
            OrderLineItem(
                title=item.title,
                product_id=item.product_id,
                product_title=item.product_title,
                variant_id=item.variant_id,
                variant_title=item.variant_title,
                variant_options=item.variant_options,
                unit_price=item.unit_price,
                quantity=item.quantity,
                item_metadata=item.metadata,
                position=position,
            )
            for position, item in enumerate(items)
        ]
        self.db.add(order)
        self.db.commit()
        return order


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'boxoffice.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    return EngineConfig(fee_percentage=0.1, validation_base_url="https://tickets.example.com")


@pytest.fixture
def builder(db):
    return CatalogBuilder(db)


@pytest.fixture
def jazz_night(builder):
    """Main Hall, one standard row of two seats; Jazz Night on 2025-07-01"""
    venue = builder.venue("Main Hall", [("A", RowCategory.STANDARD.value, 2)])
    return builder.show(venue, "Jazz Night", [JAZZ_DATE])


@pytest.fixture
def open_mic(builder):
    """General access, capacity override 50, only a synthetic general_access row"""
    venue = builder.venue("Corner Stage", [("GA", RowCategory.GENERAL_ACCESS.value, 50)])
    return builder.show(
        venue, "Open Mic", [OPEN_MIC_DATE],
        admission_mode=AdmissionMode.GENERAL_ACCESS.value,
        capacity_override=50,
    )


@pytest.fixture
def make_cart(db, config):
    """Create a cart holding the given line items and return its id"""
    def _make_cart(items: Iterable[LineItemCreate], email: str = "guest@example.com") -> str:
        service = CartService(db, config)
        cart = service.create_cart(CartCreate(email=email, customer_first_name="Ada", customer_last_name="Lovelace"))
        cart_id = cart.id
        for item in items:
            service.add_line_item(cart_id, item)
        return cart_id

    return _make_cart


@pytest.fixture
def client(session_factory, config):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine_config] = lambda: config
    yield TestClient(app)
    app.dependency_overrides.clear()
