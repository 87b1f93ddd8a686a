from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from .db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class CabinModel(Base):
    __tablename__ = "cabins"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    name = Column(String(64), nullable=False)
    max_capacity = Column(Integer, nullable=False)
    regular_price = Column(Float, nullable=False, default=0.0)

    bookings = relationship("BookingModel", back_populates="cabin")


class GuestModel(Base):
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    full_name = Column(String(128), nullable=False)
    email = Column(String(128), default="")
    nationality = Column(String(64), default="")
    national_id = Column(String(64), default="")
    country_flag = Column(String, default="")

    bookings = relationship("BookingModel", back_populates="guest")


class SettingsModel(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    breakfast_price = Column(Float, nullable=False, default=0.0)


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    cabin_id = Column(Integer, ForeignKey("cabins.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False)
    num_nights = Column(Integer, nullable=False)
    num_guests = Column(Integer, nullable=False)
    cabin_price = Column(Float, nullable=False)
    extras_price = Column(Float, nullable=False, default=0.0)
    total_price = Column(Float, nullable=False)
    status = Column(String(32), default="unconfirmed", index=True)
    has_breakfast = Column(Boolean, default=False)
    is_paid = Column(Boolean, default=False)
    observations = Column(Text, default="")

    cabin = relationship("CabinModel", back_populates="bookings")
    guest = relationship("GuestModel", back_populates="bookings")
