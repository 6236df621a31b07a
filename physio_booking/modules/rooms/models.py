# physio_booking/modules/rooms/models.py
from __future__ import annotations

import datetime as dt

from sqlalchemy import JSON, Boolean, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from physio_booking.db.base import Base, UUIDPKMixin, ReprMixin


class Room(UUIDPKMixin, ReprMixin, Base):
    """
    Treatment room. Bookings reference rooms by name.
    """

    __tablename__ = "rooms"

    name: Mapped[str] = mapped_column(String(80), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    equipment: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    created_at: Mapped[dt.datetime] = mapped_column(nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("name", name="uq_rooms_name"),)
