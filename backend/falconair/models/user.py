"""
User model carrying the Falcon Flyer loyalty account.

Key design decisions:
- One loyalty account per user, stored on the user row (membership number,
  cumulative miles/points, tier)
- loyalty_tier is always written together with loyalty_points by the rewards
  engine, never on its own
- `version` column enables optimistic locking for concurrent reward updates
"""

from sqlalchemy import Column, Integer, String, Boolean, Enum, CheckConstraint
from sqlalchemy.orm import relationship

from falconair.db.base import Base, TimestampMixin
from falconair.models.enums import LoyaltyTier, enum_values


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(30), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Falcon Flyer account
    membership_number = Column(String(20), unique=True, index=True, nullable=False)
    loyalty_miles = Column(Integer, nullable=False, default=0)
    loyalty_points = Column(Integer, nullable=False, default=0)
    loyalty_tier = Column(
        Enum(
            LoyaltyTier,
            name="loyalty_tier",
            native_enum=False,
            create_constraint=True,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=LoyaltyTier.BLUE,
    )

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    bookings = relationship("Booking", back_populates="user", lazy="selectin")

    __table_args__ = (
        CheckConstraint("loyalty_miles >= 0", name="check_loyalty_miles_non_negative"),
        CheckConstraint("loyalty_points >= 0", name="check_loyalty_points_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, tier={self.loyalty_tier})>"
