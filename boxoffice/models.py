import uuid
from enum import Enum

from sqlalchemy import (
    JSON, BigInteger, Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index,
    Integer, Numeric, String, UniqueConstraint, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from boxoffice.database import Base

GA_SEAT_LABEL = "GA"
GA_ROW_NUMBER = "GA"
SERVICE_FEE_TYPE = "service_fee"


def _uuid() -> str:
    return str(uuid.uuid4())


class RowCategory(str, Enum):
    PREMIUM = "premium"
    BALCONY = "balcony"
    STANDARD = "standard"
    VIP = "vip"
    GENERAL_ACCESS = "general_access"


class AdmissionMode(str, Enum):
    SEAT_BASED = "seat_based"
    GENERAL_ACCESS = "general_access"


class TicketStatus(str, Enum):
    PENDING = "pending"
    SCANNED = "scanned"

# ================================
# Venues & Rows
# ================================
class Venue(Base):
    __tablename__ = "venues"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    rows = relationship("VenueRow", back_populates="venue", order_by="VenueRow.id")
    shows = relationship("Show", back_populates="venue")


class VenueRow(Base):
    __tablename__ = "venue_rows"
    __table_args__ = (
        UniqueConstraint("venue_id", "row_number", name="uq_venue_rows_venue_row_number"),
        CheckConstraint("seat_count > 0", name="ck_venue_rows_seat_count_positive"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    venue_id = Column(BigInteger, ForeignKey("venues.id"), nullable=False, index=True)
    row_number = Column(String(50), nullable=False)
    category = Column(String(50), nullable=False, default=RowCategory.STANDARD.value)
    seat_count = Column(Integer, nullable=False)
    # Created by ticket issuance to anchor GA tickets; never counts towards capacity
    is_placeholder = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    venue = relationship("Venue", back_populates="rows")
    tickets = relationship("Ticket", back_populates="row")

# ================================
# Shows & Variants
# ================================
class Show(Base):
    __tablename__ = "shows"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    external_product_ref = Column(String(100), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    venue_id = Column(BigInteger, ForeignKey("venues.id"), nullable=False, index=True)
    admission_mode = Column(String(50), nullable=False, default=AdmissionMode.SEAT_BASED.value)
    capacity_override = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    venue = relationship("Venue", back_populates="shows")
    dates = relationship("ShowDate", back_populates="show", order_by="ShowDate.show_date",
                         cascade="all, delete-orphan")
    variants = relationship("ShowVariant", back_populates="show")
    tickets = relationship("Ticket", back_populates="show")

    @property
    def date_values(self):
        return [d.show_date for d in self.dates]

    @property
    def is_general_access(self) -> bool:
        return self.admission_mode == AdmissionMode.GENERAL_ACCESS.value


class ShowDate(Base):
    __tablename__ = "show_dates"
    __table_args__ = (
        UniqueConstraint("show_id", "show_date", name="uq_show_dates_show_date"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    show_id = Column(BigInteger, ForeignKey("shows.id"), nullable=False, index=True)
    show_date = Column(Date, nullable=False)

    show = relationship("Show", back_populates="dates")


class ShowVariant(Base):
    __tablename__ = "show_variants"
    __table_args__ = (
        UniqueConstraint("show_id", "show_date", "category", name="uq_show_variants_date_category"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    show_id = Column(BigInteger, ForeignKey("shows.id"), nullable=False, index=True)
    external_variant_ref = Column(String(100), unique=True, nullable=False)
    show_date = Column(Date, nullable=False)
    category = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    show = relationship("Show", back_populates="variants")
    tickets = relationship("Ticket", back_populates="show_variant")

# ================================
# Tickets & Inventory
# ================================
class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        # One ticket per physical seat and date; general access units share the GA label.
        # Seat labels are digits only (LineItemResolver._resolve_seat), so no seat can be "GA".
        Index(
            "uq_tickets_seat_per_date",
            "show_id", "row_id", "seat_label", "show_date",
            unique=True,
            postgresql_where=text(f"seat_label <> '{GA_SEAT_LABEL}'"),
            sqlite_where=text(f"seat_label <> '{GA_SEAT_LABEL}'"),
        ),
        Index("ix_tickets_show_date", "show_id", "show_date"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    show_id = Column(BigInteger, ForeignKey("shows.id"), nullable=False)
    show_variant_id = Column(BigInteger, ForeignKey("show_variants.id"), nullable=False, index=True)
    row_id = Column(BigInteger, ForeignKey("venue_rows.id"))
    seat_label = Column(String(20), nullable=False)
    show_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=TicketStatus.PENDING.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    order = relationship("Order", back_populates="tickets")
    show = relationship("Show", back_populates="tickets")
    show_variant = relationship("ShowVariant", back_populates="tickets")
    row = relationship("VenueRow", back_populates="tickets")


class GeneralAccessAllocation(Base):
    __tablename__ = "general_access_allocations"
    __table_args__ = (
        UniqueConstraint("show_id", "show_date", name="uq_ga_allocations_show_date"),
        CheckConstraint("sold >= 0", name="ck_ga_allocations_sold_non_negative"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    show_id = Column(BigInteger, ForeignKey("shows.id"), nullable=False)
    show_date = Column(Date, nullable=False)
    sold = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

# ================================
# Carts & Orders (commerce collaborators)
# ================================
class Cart(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255))
    customer_first_name = Column(String(255))
    customer_last_name = Column(String(255))
    currency_code = Column(String(3), nullable=False, default="usd")
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    items = relationship("CartLineItem", back_populates="cart", order_by="CartLineItem.position",
                         cascade="all, delete-orphan")


class CartLineItem(Base):
    __tablename__ = "cart_line_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    cart_id = Column(String(36), ForeignKey("carts.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    product_id = Column(String(100))
    product_title = Column(String(255))
    variant_id = Column(String(100))
    variant_title = Column(String(255))
    variant_options = Column(JSON)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    position = Column(Integer, nullable=False, default=0)
    item_metadata = Column("metadata", JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    cart = relationship("Cart", back_populates="items")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    cart_id = Column(String(36), ForeignKey("carts.id"), index=True)
    email = Column(String(255))
    customer_first_name = Column(String(255))
    customer_last_name = Column(String(255))
    currency_code = Column(String(3), nullable=False, default="usd")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    items = relationship("OrderLineItem", back_populates="order", order_by="OrderLineItem.position",
                         cascade="all, delete-orphan")
    tickets = relationship("Ticket", back_populates="order")

    @property
    def customer_name(self) -> str:
        name = f"{self.customer_first_name or ''} {self.customer_last_name or ''}".strip()
        return name or "Guest"


class OrderLineItem(Base):
    __tablename__ = "order_line_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    product_id = Column(String(100))
    product_title = Column(String(255))
    variant_id = Column(String(100))
    variant_title = Column(String(255))
    variant_options = Column(JSON)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    position = Column(Integer, nullable=False, default=0)
    item_metadata = Column("metadata", JSON)

    order = relationship("Order", back_populates="items")

    @property
    def total(self):
        return self.unit_price * self.quantity
