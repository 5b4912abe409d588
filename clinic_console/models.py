from __future__ import annotations

import datetime as dt
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from clinic_console.calendar.types import Appointment as CalendarAppointment
from clinic_console.extensions import db


class Base(DeclarativeBase):
    """Declarative base for the local appointment store."""


class QueryMixin:
    """Provide a Flask-SQLAlchemy-style query attribute."""

    @classmethod
    def query(cls):  # type: ignore[override]
        return db.session().query(cls)


class Doctor(QueryMixin, Base):
    __tablename__ = "doctors"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)

    appointments: Mapped[List["Appointment"]] = relationship(back_populates="doctor")

    @property
    def display_name(self) -> str:
        return f"Dr. {self.first_name} {self.last_name}"


class Appointment(QueryMixin, Base):
    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    patient_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    doctor_id: Mapped[str] = mapped_column(Text, ForeignKey("doctors.id"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_time: Mapped[dt.datetime] = mapped_column("starts_at", DateTime, nullable=False)
    end_time: Mapped[dt.datetime] = mapped_column("ends_at", DateTime, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="scheduled")
    type: Mapped[str] = mapped_column(Text, nullable=False, default="routine")
    created_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)

    doctor: Mapped[Optional[Doctor]] = relationship(Doctor, back_populates="appointments")

    def to_calendar(self) -> CalendarAppointment:
        return CalendarAppointment(
            id=self.id,
            patient_id=self.patient_id,
            doctor_id=self.doctor_id,
            title=self.title,
            start_time=self.start_time,
            end_time=self.end_time,
            status=self.status,
            type=self.type,
            notes=self.notes,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
