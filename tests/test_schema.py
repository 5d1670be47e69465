"""Tests for property value normalization."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from dml2graph.errors import UnsupportedValueError
from dml2graph.graph import format_node_properties, to_epoch_millis, to_property_value


def test_scalars_pass_through():
    assert to_property_value(True) is True
    assert to_property_value(12) == 12
    assert to_property_value(1.5) == 1.5
    assert to_property_value("text") == "text"


def test_timestamps_become_epoch_millis():
    aware = datetime(2014, 3, 1, 12, 30, 15, 250000, tzinfo=timezone.utc)
    assert to_property_value(aware) == 1393677015250


def test_naive_timestamps_are_read_as_utc():
    naive = datetime(1970, 1, 2)
    assert to_epoch_millis(naive) == 86_400_000


def test_offset_timestamps_are_normalized():
    plus_one = datetime(1970, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=1)))
    assert to_epoch_millis(plus_one) == 0


def test_dates_map_to_utc_midnight():
    assert to_property_value(date(1970, 1, 3)) == 2 * 86_400_000


def test_pre_epoch_timestamps_are_negative():
    assert to_epoch_millis(datetime(1969, 12, 31, 23, 59, 59, 500000)) == -500


def test_decimals_become_floats():
    assert to_property_value(Decimal("10.25")) == 10.25


def test_unsupported_values_are_rejected():
    with pytest.raises(UnsupportedValueError):
        to_property_value(b"\x00\x01")


def test_format_node_properties_omits_nulls():
    assert format_node_properties({"name": "Rex", "nickname": None, "age": 3}) == {"name": "Rex", "age": 3}
