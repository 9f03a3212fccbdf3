"""Initial schema: users, airports, routes, flights, bookings with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2025-09-24
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table, one Falcon Flyer account per user
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone_number", sa.String(30), nullable=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("membership_number", sa.String(20), nullable=False),
        sa.Column("loyalty_miles", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("loyalty_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("loyalty_tier", sa.String(20), nullable=False, server_default=sa.text("'BLUE'")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("loyalty_miles >= 0", name="check_loyalty_miles_non_negative"),
        sa.CheckConstraint("loyalty_points >= 0", name="check_loyalty_points_non_negative"),
        sa.CheckConstraint(
            "loyalty_tier IN ('BLUE', 'SILVER', 'GOLD', 'PLATINUM')", name="loyalty_tier"
        ),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_membership_number", "users", ["membership_number"], unique=True)

    # Catalog reference data
    op.create_table(
        "airports",
        sa.Column("code", sa.String(3), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("country", sa.String(100), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "routes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("departure_airport", sa.String(3), sa.ForeignKey("airports.code"), nullable=False),
        sa.Column("arrival_airport", sa.String(3), sa.ForeignKey("airports.code"), nullable=False),
        sa.Column("distance_miles", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("departure_airport", "arrival_airport", name="uq_route_airport_pair"),
        sa.CheckConstraint("distance_miles > 0", name="check_route_distance_positive"),
        sa.CheckConstraint("departure_airport <> arrival_airport", name="check_route_distinct_airports"),
    )
    op.create_index("ix_routes_id", "routes", ["id"])

    # Flights table with per-class seat counters
    op.create_table(
        "flights",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("flight_number", sa.String(10), nullable=False),
        sa.Column("departure_airport", sa.String(3), nullable=False),
        sa.Column("arrival_airport", sa.String(3), nullable=False),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("arrival_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("aircraft_type", sa.String(50), nullable=True),
        sa.Column("economy_price", sa.Float(), nullable=False),
        sa.Column("business_price", sa.Float(), nullable=False),
        sa.Column("total_economy_seats", sa.Integer(), nullable=False),
        sa.Column("total_business_seats", sa.Integer(), nullable=False),
        sa.Column("available_economy_seats", sa.Integer(), nullable=False),
        sa.Column("available_business_seats", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'scheduled'")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("arrival_time > departure_time", name="check_arrival_after_departure"),
        sa.CheckConstraint("available_economy_seats >= 0", name="check_economy_seats_non_negative"),
        sa.CheckConstraint("available_business_seats >= 0", name="check_business_seats_non_negative"),
        sa.CheckConstraint(
            "available_economy_seats <= total_economy_seats", name="check_economy_available_lte_total"
        ),
        sa.CheckConstraint(
            "available_business_seats <= total_business_seats", name="check_business_available_lte_total"
        ),
        sa.CheckConstraint("economy_price >= 0 AND business_price >= 0", name="check_prices_non_negative"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'delayed', 'boarding', 'departed', 'arrived', 'cancelled')",
            name="flight_status",
        ),
    )
    op.create_index("ix_flights_id", "flights", ["id"])
    op.create_index("ix_flights_flight_number", "flights", ["flight_number"])
    # Route search: WHERE departure_airport = ? AND arrival_airport = ? [AND departure_time in day]
    op.create_index(
        "ix_flights_route_departure", "flights", ["departure_airport", "arrival_airport", "departure_time"]
    )

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_reference", sa.String(10), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("flight_id", sa.Integer(), sa.ForeignKey("flights.id"), nullable=False),
        sa.Column("passenger_name", sa.String(255), nullable=False),
        sa.Column("passenger_email", sa.String(255), nullable=False),
        sa.Column("passport_number", sa.String(50), nullable=False),
        sa.Column("seat_class", sa.String(20), nullable=False),
        sa.Column("seat_number", sa.String(5), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("booking_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("booking_status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refund_amount", sa.Float(), nullable=True),
        sa.Column("rescheduled_from_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("total_price >= 0", name="check_booking_price_non_negative"),
        sa.CheckConstraint("seat_class IN ('economy', 'business')", name="seat_class"),
        sa.CheckConstraint(
            "booking_status IN ('confirmed', 'checked_in', 'cancelled')", name="booking_status"
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_booking_reference", "bookings", ["booking_reference"], unique=True)
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_flight_id", "bookings", ["flight_id"])
    op.create_index("ix_bookings_booking_status", "bookings", ["booking_status"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("flights")
    op.drop_table("routes")
    op.drop_table("airports")
    op.drop_table("users")
