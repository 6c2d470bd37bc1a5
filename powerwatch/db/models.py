"""
SQLAlchemy ORM models for the metrics store.

Defines the EnergyMetric model, the persisted form of a TelemetrySample.
Rows are append-only: the ingestion scheduler creates them and nothing in
this service updates or deletes them.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

import datetime

from sqlalchemy import DateTime, Double, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all Powerwatch ORM models."""

    pass


class EnergyMetric(Base):
    """One ingested power/current sample.

    Attributes:
        id: Surrogate key assigned by the database.
        power_value: Instantaneous power in watts.
        current_value: Instantaneous current in amps (nullable).
        timestamp: Capture time in UTC.
    """

    __tablename__ = "energy_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    power_value: Mapped[float] = mapped_column(Double, nullable=False)
    current_value: Mapped[float | None] = mapped_column(Double, nullable=True)
    timestamp: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """Return string representation of the EnergyMetric."""
        return (
            f"EnergyMetric(id={self.id!r}, "
            f"timestamp={self.timestamp!r}, power_value={self.power_value!r})"
        )
