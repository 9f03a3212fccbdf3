"""
Booking model representing a passenger's seat on a flight.

Key design decisions:
- booking_status is a closed set (confirmed, checked_in, cancelled) enforced
  by a CHECK constraint; cancelled is terminal
- Bookings are never deleted, cancellation flips the status and records the
  refund owed
- Reschedule creates a new row linked through rescheduled_from_id so the
  reference and price history stay traceable
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from falconair.db.base import Base, TimestampMixin, utcnow
from falconair.models.enums import BookingStatus, SeatClass, enum_values


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_reference = Column(String(10), unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    flight_id = Column(Integer, ForeignKey("flights.id"), nullable=False, index=True)

    passenger_name = Column(String(255), nullable=False)
    passenger_email = Column(String(255), nullable=False)
    passport_number = Column(String(50), nullable=False)
    seat_class = Column(
        Enum(
            SeatClass,
            name="seat_class",
            native_enum=False,
            create_constraint=True,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
    )
    seat_number = Column(String(5), nullable=False)
    total_price = Column(Float, nullable=False)
    booking_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    booking_status = Column(
        Enum(
            BookingStatus,
            name="booking_status",
            native_enum=False,
            create_constraint=True,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=BookingStatus.CONFIRMED,
        index=True,
    )

    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    refund_amount = Column(Float, nullable=True)
    rescheduled_from_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)

    user = relationship("User", back_populates="bookings")
    flight = relationship("Flight", lazy="selectin")

    __table_args__ = (
        CheckConstraint("total_price >= 0", name="check_booking_price_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, ref={self.booking_reference}, flight={self.flight_id}, "
            f"status={self.booking_status})>"
        )
