"""
Tests for the EnergyMetric SQLAlchemy model.

Validates table name, column names and types, nullability, the timestamp
index and repr.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

import datetime

from sqlalchemy import DateTime, Double, Integer, inspect

from powerwatch.db.models import Base, EnergyMetric


class TestEnergyMetricColumns:
    """Tests that EnergyMetric defines the persisted sample fields."""

    def test_column_names(self) -> None:
        """EnergyMetric has id, power_value, current_value and timestamp."""
        mapper = inspect(EnergyMetric)
        column_names = {col.key for col in mapper.column_attrs}
        assert column_names == {"id", "power_value", "current_value", "timestamp"}

    def test_column_types(self) -> None:
        table = EnergyMetric.__table__
        assert isinstance(table.c.id.type, Integer)
        assert isinstance(table.c.power_value.type, Double)
        assert isinstance(table.c.current_value.type, Double)
        assert isinstance(table.c.timestamp.type, DateTime)
        assert table.c.timestamp.type.timezone is True

    def test_nullability(self) -> None:
        """Only current_value may be NULL."""
        table = EnergyMetric.__table__
        assert table.c.power_value.nullable is False
        assert table.c.current_value.nullable is True
        assert table.c.timestamp.nullable is False

    def test_id_is_primary_key(self) -> None:
        pk_columns = [col.name for col in EnergyMetric.__table__.primary_key.columns]
        assert pk_columns == ["id"]

    def test_timestamp_is_indexed(self) -> None:
        assert EnergyMetric.__table__.c.timestamp.index is True


class TestEnergyMetricTable:
    def test_table_name(self) -> None:
        assert EnergyMetric.__tablename__ == "energy_metrics"

    def test_registered_on_base_metadata(self) -> None:
        assert "energy_metrics" in Base.metadata.tables


def test_repr_includes_timestamp_and_power() -> None:
    """repr() names the model and its key values."""
    ts = datetime.datetime(2026, 10, 19, 10, 0, tzinfo=datetime.UTC)
    metric = EnergyMetric(id=1, power_value=1500.0, current_value=6.5, timestamp=ts)
    text = repr(metric)
    assert text.startswith("EnergyMetric(")
    assert "power_value=1500.0" in text
